"""Canonical schemas for judgment extraction and dispute analysis.

Field names follow the JSON the model is asked to produce (camelCase).
Legacy aliases accepted during normalization:

    basicInfo.judgeDate         <- judgmentDate
    basicInfo.judge             <- judges
    facts.timeline              <- events
    facts.keyFacts              <- mainFacts
    evidence.items              <- evidenceList
    reasoning.logicChain        <- reasoningChain
    disputes[].relatedEvents    <- relatedEvidence
"""

from datetime import datetime, timezone
from typing import Optional

from judgment_ai.schemas.canonical import (
    array_field,
    boolean_field,
    enum_field,
    number_field,
    object_field,
    sequential_id,
    string_field,
    today_iso,
    validate_schema,
)

CASE_TYPES = ("民事", "刑事", "行政", "执行")
PARTY_TYPES = ("自然人", "法人", "其他组织")
IMPORTANCE_LEVELS = ("critical", "important", "normal")
EVIDENCE_TYPES = ("书证", "物证", "证人证言", "鉴定意见", "勘验笔录", "视听资料", "电子数据", "当事人陈述")
SUBMITTERS = ("原告", "被告", "第三人", "法院调取")
CHAIN_STRENGTHS = ("strong", "moderate", "weak")
LEGAL_BASIS_SOURCES = ("判决书原文", "AI补充", "待核实")
SEVERITIES = ("critical", "major", "minor", "informational")
DISPUTE_CATEGORIES = ("fact", "law", "procedure", "evidence", "other")
DIFFICULTIES = ("easy", "medium", "hard", "expert")

_STRING_ITEM = string_field("*")


def _utc_now_iso(index: Optional[int] = None) -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Basic information
# ---------------------------------------------------------------------------

PARTY_SCHEMA = object_field("party", [
    string_field("name", description="Party name"),
    enum_field("type", PARTY_TYPES, default="", description="自然人/法人/其他组织"),
    string_field("legalRepresentative", description="Legal representative"),
    array_field("attorney", _STRING_ITEM, split=True, description="Attorneys"),
])

BASIC_INFO_SCHEMA = object_field("basicInfo", [
    string_field("caseNumber", description="Case number, e.g. (2024)京01民初123号"),
    string_field("court", description="Court name"),
    string_field(
        "judgeDate",
        aliases=("judgmentDate",),
        default_factory=today_iso,
        description="Judgment date, YYYY-MM-DD",
    ),
    enum_field("caseType", CASE_TYPES, default="", description="民事/刑事/行政/执行"),
    array_field("judge", _STRING_ITEM, aliases=("judges",), split=True, description="Judges"),
    string_field("clerk", description="Court clerk"),
    object_field("parties", [
        array_field("plaintiff", PARTY_SCHEMA, description="Plaintiffs"),
        array_field("defendant", PARTY_SCHEMA, description="Defendants"),
        array_field("thirdParty", PARTY_SCHEMA, description="Third parties"),
    ]),
])

# ---------------------------------------------------------------------------
# Facts
# ---------------------------------------------------------------------------

TIMELINE_EVENT_SCHEMA = object_field("timelineEvent", [
    string_field("date", description="YYYY-MM-DD, or as precise as the text allows"),
    string_field("event", description="Who did what, with what result"),
    enum_field("importance", IMPORTANCE_LEVELS, default="normal", description="critical|important|normal"),
    array_field("actors", _STRING_ITEM, split=True, description="Actors involved"),
    string_field("location", description="Location, if stated"),
    array_field("relatedEvidence", _STRING_ITEM, split=True, description="Evidence names"),
    string_field("causalRelation", description="Causal link to later events"),
])

FACTS_SCHEMA = object_field("facts", [
    string_field("summary", description="Summary of the facts found by the court"),
    array_field("timeline", TIMELINE_EVENT_SCHEMA, aliases=("events",), description="Chronological events"),
    array_field("keyFacts", _STRING_ITEM, aliases=("mainFacts",), description="Key facts"),
    array_field("disputedFacts", _STRING_ITEM, description="Facts the parties dispute"),
    array_field("undisputedFacts", _STRING_ITEM, description="Facts both parties accept"),
])

# ---------------------------------------------------------------------------
# Evidence
# ---------------------------------------------------------------------------

EVIDENCE_ITEM_SCHEMA = object_field("evidenceItem", [
    string_field("id", default_factory=sequential_id("evidence"), description="evidence-<n>"),
    string_field("name", description="Full evidence name"),
    enum_field("type", EVIDENCE_TYPES, default="书证", description="|".join(EVIDENCE_TYPES)),
    enum_field("submittedBy", SUBMITTERS, default="原告", description="|".join(SUBMITTERS)),
    string_field("description", description="Content of the evidence"),
    number_field("credibilityScore", 0, 100, default=50, description="0-100"),
    number_field("relevanceScore", 0, 100, default=50, description="0-100"),
    boolean_field("accepted", default=True, description="Whether the court admitted it"),
    string_field("courtOpinion", description="Court's assessment"),
    array_field("relatedFacts", _STRING_ITEM, split=True, description="Facts it proves"),
])

CHAIN_ANALYSIS_SCHEMA = object_field("chainAnalysis", [
    boolean_field("complete", default=False, description="Whether the chain is closed"),
    array_field("missingLinks", _STRING_ITEM, description="Missing links"),
    enum_field("strength", CHAIN_STRENGTHS, default="moderate", description="strong|moderate|weak"),
    string_field("analysis", description="Overall assessment of the chain"),
])

EVIDENCE_SCHEMA = object_field("evidence", [
    string_field("summary", description="Overview of the evidence submitted"),
    array_field("items", EVIDENCE_ITEM_SCHEMA, aliases=("evidenceList",), description="Evidence items"),
    CHAIN_ANALYSIS_SCHEMA,
    string_field("crossExamination", description="Cross-examination record"),
])

# ---------------------------------------------------------------------------
# Reasoning
# ---------------------------------------------------------------------------

LEGAL_BASIS_SCHEMA = object_field("legalBasis", [
    string_field("law", description="Statute name"),
    string_field("article", description="Article number"),
    string_field("clause", description="Paragraph/clause, if any"),
    string_field("content", description="Text of the provision"),
    enum_field("source", LEGAL_BASIS_SOURCES, default="待核实", description="|".join(LEGAL_BASIS_SOURCES)),
    string_field("application", description="How the court applied it to the facts"),
    string_field("interpretation", description="Court's interpretation, if stated"),
])

LOGIC_STEP_SCHEMA = object_field("logicStep", [
    string_field("premise", description="Major premise: the legal rule"),
    string_field("inference", description="Minor premise: how the facts meet the rule"),
    string_field("conclusion", description="Legal consequence"),
    array_field("supportingEvidence", _STRING_ITEM, split=True, description="Supporting evidence"),
])

REASONING_SCHEMA = object_field("reasoning", [
    string_field("summary", description="Core of the court's reasoning"),
    array_field("legalBasis", LEGAL_BASIS_SCHEMA, description="Cited provisions"),
    array_field("logicChain", LOGIC_STEP_SCHEMA, aliases=("reasoningChain",), description="Syllogisms"),
    array_field("keyArguments", _STRING_ITEM, description="Key arguments"),
    string_field("judgment", description="Operative part of the judgment"),
    string_field("dissenting", description="Dissenting opinion, if any"),
])

# ---------------------------------------------------------------------------
# Dispute analysis
# ---------------------------------------------------------------------------

DISPUTE_SCHEMA = object_field("dispute", [
    string_field("id", default_factory=sequential_id("dispute"), description="dispute-<n>"),
    string_field("title", default="未命名争议", description="Short title of the dispute"),
    string_field("description", description="What the parties disagree about"),
    enum_field("severity", SEVERITIES, default="minor", description="|".join(SEVERITIES)),
    enum_field("category", DISPUTE_CATEGORIES, default="fact", description="|".join(DISPUTE_CATEGORIES)),
    array_field(
        "relatedEvents",
        _STRING_ITEM,
        aliases=("relatedEvidence",),
        split=True,
        description="Related events or evidence",
    ),
    array_field("keyPoints", _STRING_ITEM, description="Key points of contention"),
    enum_field("difficulty", DIFFICULTIES, default="medium", description="|".join(DIFFICULTIES)),
    string_field("teachingNotes", description="Teaching notes"),
    number_field("confidence", 0, 1, default=0.5, description="0-1"),
    boolean_field("isResolved", default=False),
    string_field("resolutionPath"),
    array_field("legalBasis", _STRING_ITEM, description="Provisions relevant to the dispute"),
    array_field("precedents", _STRING_ITEM, description="Relevant precedents"),
])

CLAIM_BASIS_MAPPING_SCHEMA = object_field("claimBasisMapping", [
    string_field("disputeId", default_factory=sequential_id("dispute"), description="Dispute id"),
    string_field("claimBasisId", default_factory=sequential_id("claim"), description="Claim basis id"),
    number_field("relevance", 0, 1, default=0.5, description="0-1"),
    string_field("explanation", description="Why the claim basis applies"),
    boolean_field("isAutoMapped", default=True),
    number_field("confidence", 0, 1, default=0.5, description="0-1"),
])

DISPUTE_RESPONSE_SCHEMA = object_field("disputeAnalysis", [
    boolean_field("success", default=False),
    array_field("disputes", DISPUTE_SCHEMA, description="Dispute focuses"),
    array_field("claimBasisMappings", CLAIM_BASIS_MAPPING_SCHEMA, description="Claim basis mappings"),
    object_field("metadata", [
        number_field("analysisTime", 0, float("inf"), default=0, description="Milliseconds"),
        string_field("modelVersion", default="unknown"),
        number_field("confidence", 0, 1, default=0.85, description="0-1"),
        string_field("timestamp", default_factory=_utc_now_iso),
        number_field("disputeCount", 0, float("inf"), default=0),
        boolean_field("cacheHit", default=False),
    ]),
    array_field("warnings", _STRING_ITEM, description="Warnings"),
])

TASK_SCHEMAS = (BASIC_INFO_SCHEMA, FACTS_SCHEMA, EVIDENCE_SCHEMA, REASONING_SCHEMA)

# Fail at import time, not at request time
for _schema in TASK_SCHEMAS + (DISPUTE_RESPONSE_SCHEMA,):
    validate_schema(_schema)
