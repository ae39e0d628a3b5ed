"""Prompts for the LLM-backed analysis branches."""

from __future__ import annotations


def intent_prompt(question: str) -> str:
    return f"""Classify the following business question into one of these intent types:
- Analytical: Complex analysis requiring aggregations, calculations
- Operational: Transactional or operational data queries
- Exploratory: Discovery queries to understand data
- Comparison: Comparing values across dimensions
- Aggregation: Summary or rollup queries
- Trend: Time-series or trend analysis
- Detail: Drill-down to detailed records

Question: {question}

Respond in JSON format:
{{
    "type": "<intent_type>",
    "description": "<brief description>",
    "confidence": <0.0-1.0>,
    "subIntents": ["<optional sub-intents>"]
}}"""


def entities_prompt(question: str) -> str:
    return f"""Extract business entities from this question. Identify:
- Table references (explicit or implied)
- Column/field references
- Metrics (measures, KPIs)
- Dimensions (grouping attributes)
- Time references
- Comparison values

Question: {question}

Respond in JSON format with an array of entities:
[
    {{
        "name": "<entity name>",
        "type": "<Table|Column|Metric|Dimension|TimeReference|ComparisonValue>",
        "originalText": "<text from question>",
        "confidence": <0.0-1.0>
    }}
]"""


def time_context_prompt(question: str) -> str:
    return f"""Extract time context from this question. Look for:
- Specific dates
- Relative time expressions (last month, year to date, etc.)
- Time comparisons
- Time granularity

Question: {question}

If no time context found, return null.
Otherwise return JSON:
{{
    "startDate": "<ISO date or null>",
    "endDate": "<ISO date or null>",
    "relativeExpression": "<expression or empty>",
    "granularity": "<Hour|Day|Week|Month|Quarter|Year|Unknown>"
}}"""
