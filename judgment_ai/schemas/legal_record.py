"""Typed StructuredLegalRecord models.

Attributes are snake_case; serialization uses the camelCase names of the
canonical schemas. Every field has a value, containers default to empty.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CaseType = Literal["民事", "刑事", "行政", "执行", ""]
PartyType = Literal["自然人", "法人", "其他组织", ""]
Importance = Literal["critical", "important", "normal"]
EvidenceType = Literal["书证", "物证", "证人证言", "鉴定意见", "勘验笔录", "视听资料", "电子数据", "当事人陈述"]
Submitter = Literal["原告", "被告", "第三人", "法院调取"]
ChainStrength = Literal["strong", "moderate", "weak"]
LegalBasisSource = Literal["判决书原文", "AI补充", "待核实"]


class RecordModel(BaseModel):
    """Base for immutable record parts."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Party(RecordModel):
    name: str = ""
    type: PartyType = ""
    legal_representative: str = ""
    attorney: List[str] = Field(default_factory=list)


class Parties(RecordModel):
    plaintiff: List[Party] = Field(default_factory=list)
    defendant: List[Party] = Field(default_factory=list)
    third_party: List[Party] = Field(default_factory=list)


class BasicInfo(RecordModel):
    """Case caption data."""

    case_number: str = ""
    court: str = ""
    judge_date: str = Field(default_factory=lambda: date.today().isoformat())
    case_type: CaseType = ""
    judge: List[str] = Field(default_factory=list)
    clerk: str = ""
    parties: Parties = Field(default_factory=Parties)


class TimelineEvent(RecordModel):
    date: str = ""
    event: str = ""
    importance: Importance = "normal"
    actors: List[str] = Field(default_factory=list)
    location: str = ""
    related_evidence: List[str] = Field(default_factory=list)
    causal_relation: str = ""


class Facts(RecordModel):
    """Facts found by the court, with an ordered timeline."""

    summary: str = ""
    timeline: List[TimelineEvent] = Field(default_factory=list)
    key_facts: List[str] = Field(default_factory=list)
    disputed_facts: List[str] = Field(default_factory=list)
    undisputed_facts: List[str] = Field(default_factory=list)


class EvidenceItem(RecordModel):
    id: str = ""
    name: str = ""
    type: EvidenceType = "书证"
    submitted_by: Submitter = "原告"
    description: str = ""
    credibility_score: float = Field(default=50, ge=0, le=100)
    relevance_score: float = Field(default=50, ge=0, le=100)
    accepted: bool = True
    court_opinion: str = ""
    related_facts: List[str] = Field(default_factory=list)


class ChainAnalysis(RecordModel):
    complete: bool = False
    missing_links: List[str] = Field(default_factory=list)
    strength: ChainStrength = "moderate"
    analysis: str = ""


class Evidence(RecordModel):
    """Evidence items and the overall chain-strength verdict."""

    summary: str = ""
    items: List[EvidenceItem] = Field(default_factory=list)
    chain_analysis: ChainAnalysis = Field(default_factory=ChainAnalysis)
    cross_examination: str = ""


class LegalBasis(RecordModel):
    law: str = ""
    article: str = ""
    clause: str = ""
    content: str = ""
    source: LegalBasisSource = "待核实"
    application: str = ""
    interpretation: str = ""


class LogicStep(RecordModel):
    premise: str = ""
    inference: str = ""
    conclusion: str = ""
    supporting_evidence: List[str] = Field(default_factory=list)


class Reasoning(RecordModel):
    """Legal basis citations and the premise/inference/conclusion chain."""

    summary: str = ""
    legal_basis: List[LegalBasis] = Field(default_factory=list)
    logic_chain: List[LogicStep] = Field(default_factory=list)
    key_arguments: List[str] = Field(default_factory=list)
    judgment: str = ""
    dissenting: str = ""


class RecordMetadata(RecordModel):
    """Extraction metadata.

    confidence is a 0-100 heuristic of how much of the record came from
    real model output rather than defaults.
    """

    extracted_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    processing_time: int = 0
    confidence: int = Field(default=0, ge=0, le=100)
    ai_model: str = ""
    extraction_method: str = "pure-ai"
    version: str = "2.0.0"
    failed_tasks: List[str] = Field(default_factory=list)


class StructuredLegalRecord(RecordModel):
    """Complete, schema-conformant record of one judgment."""

    basic_info: BasicInfo = Field(default_factory=BasicInfo)
    facts: Facts = Field(default_factory=Facts)
    evidence: Evidence = Field(default_factory=Evidence)
    reasoning: Reasoning = Field(default_factory=Reasoning)
    metadata: RecordMetadata = Field(default_factory=RecordMetadata)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase mapping handed to consumers."""
        return self.model_dump(by_alias=True, mode="json")
