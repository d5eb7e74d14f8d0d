"""Unit tests for ResponseNormalizer."""

import copy
import math

import pytest

from judgment_ai.core.exceptions import SchemaDefinitionError
from judgment_ai.schemas.canonical import (
    FieldKind,
    array_field,
    build_default,
    enum_field,
    number_field,
    object_field,
    string_field,
)
from judgment_ai.schemas.legal_schemas import (
    BASIC_INFO_SCHEMA,
    DISPUTE_RESPONSE_SCHEMA,
    DISPUTE_SCHEMA,
    EVIDENCE_SCHEMA,
    FACTS_SCHEMA,
    REASONING_SCHEMA,
    TASK_SCHEMAS,
)
from judgment_ai.services.normalization.response_normalizer import (
    RepairKind,
    ResponseNormalizer,
    ValidationOutcome,
)

from conftest import BASIC_INFO_PAYLOAD, EVIDENCE_PAYLOAD, FACTS_PAYLOAD, REASONING_PAYLOAD

_PYTHON_TYPES = {
    FieldKind.STRING: str,
    FieldKind.ENUM: str,
    FieldKind.BOOLEAN: bool,
    FieldKind.ARRAY: list,
    FieldKind.OBJECT: dict,
}


def assert_conforms(value, spec, path="$"):
    """Every documented field is present and of the documented type."""
    if spec.kind == FieldKind.NUMBER:
        assert isinstance(value, (int, float)) and not isinstance(value, bool), path
        assert not math.isnan(value), path
        assert spec.minimum <= value <= spec.maximum, path
        return
    assert isinstance(value, _PYTHON_TYPES[spec.kind]), f"{path}: {value!r}"
    if spec.kind == FieldKind.ENUM:
        assert value in spec.choices or value == spec.default, path
    elif spec.kind == FieldKind.OBJECT:
        assert set(value) == {member.name for member in spec.fields}, path
        for member in spec.fields:
            assert_conforms(value[member.name], member, f"{path}.{member.name}")
    elif spec.kind == FieldKind.ARRAY:
        for position, item in enumerate(value):
            assert_conforms(item, spec.item, f"{path}[{position}]")


@pytest.fixture
def normalizer() -> ResponseNormalizer:
    return ResponseNormalizer()


def dispute(**overrides):
    value = build_default(DISPUTE_SCHEMA)
    value.update(id="dispute-1", title="货物质量", description="货物是否存在质量问题")
    value.update(overrides)
    return value


class TestNeverFails:
    """Malformed input always yields a complete, typed value."""

    @pytest.mark.parametrize("raw", [
        None,
        "not an object",
        42,
        True,
        [],
        [{"summary": "x"}],
        {},
        {"summary": None, "timeline": None},
        {"summary": {"nested": 1}, "timeline": "2023-01-01 签订合同"},
        {"timeline": [None, 3, "text", {"date": 20230110, "importance": "URGENT"}]},
        {"keyFacts": [1, None, {"a": 1}, "事实"], "disputedFacts": {"a": 1}},
        {"timeline": [{"actors": "张三，李四；王五", "relatedEvidence": 7}]},
    ])
    def test_facts_schema(self, normalizer, raw):
        outcome = normalizer.normalize(raw, FACTS_SCHEMA)

        assert isinstance(outcome, ValidationOutcome)
        assert outcome.source == "model"
        assert_conforms(outcome.value, FACTS_SCHEMA)

    @pytest.mark.parametrize("schema", TASK_SCHEMAS + (DISPUTE_RESPONSE_SCHEMA,))
    @pytest.mark.parametrize("raw", [None, "", "[]", {"unexpected": [1, 2]}, {"metadata": "x", "items": 5}])
    def test_every_schema(self, normalizer, schema, raw):
        outcome = normalizer.normalize(raw, schema)

        assert_conforms(outcome.value, schema)

    def test_nested_garbage_in_evidence(self, normalizer):
        raw = {
            "items": [
                {"credibilityScore": "high", "relevanceScore": float("nan"), "accepted": "maybe"},
                "evidence as text",
            ],
            "chainAnalysis": ["not", "an", "object"],
        }

        outcome = normalizer.normalize(raw, EVIDENCE_SCHEMA)

        assert_conforms(outcome.value, EVIDENCE_SCHEMA)
        item = outcome.value["items"][0]
        assert item["credibilityScore"] == 50
        assert item["relevanceScore"] == 50
        assert item["accepted"] is True
        assert len(outcome.value["items"]) == 1
        assert outcome.value["chainAnalysis"] == build_default(EVIDENCE_SCHEMA)["chainAnalysis"]


class TestIdempotence:
    @pytest.mark.parametrize("schema,payload", [
        (BASIC_INFO_SCHEMA, BASIC_INFO_PAYLOAD),
        (FACTS_SCHEMA, FACTS_PAYLOAD),
        (EVIDENCE_SCHEMA, EVIDENCE_PAYLOAD),
        (REASONING_SCHEMA, REASONING_PAYLOAD),
    ])
    def test_canonical_record_unchanged(self, normalizer, schema, payload):
        outcome = normalizer.normalize(copy.deepcopy(payload), schema)

        assert outcome.value == payload
        assert outcome.is_clean
        assert outcome.repairs == ()

    def test_normalizing_twice_is_stable(self, normalizer):
        first = normalizer.normalize({"timeline": [{"event": "签约", "importance": "Critical"}]}, FACTS_SCHEMA)
        second = normalizer.normalize(first.value, FACTS_SCHEMA)

        assert second.value == first.value
        assert second.is_clean

    def test_empty_enum_sentinel_is_canonical(self, normalizer):
        value = build_default(BASIC_INFO_SCHEMA)

        outcome = normalizer.normalize(value, BASIC_INFO_SCHEMA)

        assert outcome.value["caseType"] == ""
        assert outcome.is_clean


class TestEnumCoercion:
    def test_invalid_severity_becomes_default(self, normalizer):
        outcome = normalizer.normalize(dispute(severity="invalid_severity"), DISPUTE_SCHEMA)

        assert outcome.value["severity"] == "minor"
        assert outcome.was_defaulted("severity")

    def test_case_and_whitespace_are_folded(self, normalizer):
        outcome = normalizer.normalize(dispute(category=" LAW ", difficulty="Hard"), DISPUTE_SCHEMA)

        assert outcome.value["category"] == "law"
        assert outcome.value["difficulty"] == "hard"
        assert len(outcome.repairs_of_kind(RepairKind.ENUM_COERCED)) == 2

    def test_non_string_enum_replaced(self, normalizer):
        outcome = normalizer.normalize(dispute(category=3), DISPUTE_SCHEMA)

        assert outcome.value["category"] == "fact"


class TestNumericClamping:
    @pytest.mark.parametrize("raw,expected", [
        (1.5, 1),
        (-0.5, 0),
        (0.75, 0.75),
        ("0.9", 0.9),
        ("high", 0.5),
        (None, 0.5),
        (True, 0.5),
        (float("nan"), 0.5),
        ([0.9], 0.5),
    ])
    def test_dispute_confidence(self, normalizer, raw, expected):
        outcome = normalizer.normalize(dispute(confidence=raw), DISPUTE_SCHEMA)

        assert outcome.value["confidence"] == expected

    def test_clamp_is_recorded(self, normalizer):
        outcome = normalizer.normalize(dispute(confidence=1.5), DISPUTE_SCHEMA)

        repairs = outcome.repairs_of_kind(RepairKind.VALUE_CLAMPED)
        assert [repair.path for repair in repairs] == ["confidence"]

    def test_percent_string_on_hundred_scale(self, normalizer):
        raw = {"items": [{"name": "合同", "credibilityScore": "85%", "relevanceScore": "120"}]}

        item = normalizer.normalize(raw, EVIDENCE_SCHEMA).value["items"][0]

        assert item["credibilityScore"] == 85
        assert item["relevanceScore"] == 100

    def test_midpoint_when_no_default(self, normalizer):
        schema = object_field("score", [number_field("value", 0, 10)])

        outcome = normalizer.normalize({"value": "n/a"}, schema)

        assert outcome.value["value"] == 5


class TestLegacyAliases:
    @pytest.mark.parametrize("schema,canonical,legacy,value", [
        (BASIC_INFO_SCHEMA, "judgeDate", "judgmentDate", "2023-06-01"),
        (BASIC_INFO_SCHEMA, "judge", "judges", ["赵六"]),
        (FACTS_SCHEMA, "timeline", "events", [{"date": "2023-01-10", "event": "签约"}]),
        (FACTS_SCHEMA, "keyFacts", "mainFacts", ["被告未付款"]),
        (EVIDENCE_SCHEMA, "items", "evidenceList", [{"name": "合同"}]),
        (REASONING_SCHEMA, "logicChain", "reasoningChain", [{"premise": "p"}]),
        (DISPUTE_SCHEMA, "relatedEvents", "relatedEvidence", ["送货单"]),
    ])
    def test_legacy_equals_canonical(self, normalizer, schema, canonical, legacy, value):
        via_canonical = normalizer.normalize({canonical: copy.deepcopy(value)}, schema)
        via_legacy = normalizer.normalize({legacy: copy.deepcopy(value)}, schema)

        assert via_legacy.value == via_canonical.value
        renamed = via_legacy.repairs_of_kind(RepairKind.LEGACY_FIELD_RENAMED)
        assert [repair.path for repair in renamed] == [canonical]

    def test_canonical_name_wins(self, normalizer):
        outcome = normalizer.normalize({"keyFacts": ["新"], "mainFacts": ["旧"]}, FACTS_SCHEMA)

        assert outcome.value["keyFacts"] == ["新"]
        assert outcome.repairs_of_kind(RepairKind.LEGACY_FIELD_RENAMED) == []
        dropped = outcome.repairs_of_kind(RepairKind.UNKNOWN_FIELD_DROPPED)
        assert [repair.path for repair in dropped] == ["mainFacts"]


class TestArrays:
    def test_delimited_string_is_split(self, normalizer):
        outcome = normalizer.normalize(dispute(relatedEvents="合同，送货单; 发票、 收据"), DISPUTE_SCHEMA)

        assert outcome.value["relatedEvents"] == ["合同", "送货单", "发票", "收据"]

    def test_string_without_split_rule_is_dropped(self, normalizer):
        outcome = normalizer.normalize({"keyFacts": "被告未付款"}, FACTS_SCHEMA)

        assert outcome.value["keyFacts"] == []
        assert outcome.was_defaulted("keyFacts")

    def test_scalar_is_not_wrapped(self, normalizer):
        outcome = normalizer.normalize({"timeline": {"date": "2023-01-10"}}, FACTS_SCHEMA)

        assert outcome.value["timeline"] == []

    def test_wrong_item_types_dropped(self, normalizer):
        outcome = normalizer.normalize({"keyFacts": ["a", None, {"x": 1}, 3, ["b"]]}, FACTS_SCHEMA)

        assert outcome.value["keyFacts"] == ["a", "3"]
        assert len(outcome.repairs_of_kind(RepairKind.ITEM_DROPPED)) == 3

    def test_item_ids_follow_position(self, normalizer):
        raw = {"items": ["junk", {"name": "合同"}, {"name": "送货单", "id": "ev-x"}, {"name": "发票"}]}

        items = normalizer.normalize(raw, EVIDENCE_SCHEMA).value["items"]

        assert [item["id"] for item in items] == ["evidence-1", "ev-x", "evidence-3"]


class TestStructuralDefaults:
    def test_missing_nested_object_is_filled(self, normalizer):
        outcome = normalizer.normalize({"caseNumber": "(2023)京0105民初1号"}, BASIC_INFO_SCHEMA)

        parties = outcome.value["parties"]
        assert parties == {"plaintiff": [], "defendant": [], "thirdParty": []}
        assert outcome.was_defaulted("parties")

    def test_partial_nested_object_is_completed(self, normalizer):
        outcome = normalizer.normalize({"chainAnalysis": {"strength": "weak"}}, EVIDENCE_SCHEMA)

        chain = outcome.value["chainAnalysis"]
        assert chain == {"complete": False, "missingLinks": [], "strength": "weak", "analysis": ""}
        assert not outcome.was_defaulted("chainAnalysis")
        assert outcome.was_defaulted("chainAnalysis.analysis")

    def test_judge_date_defaults_to_today(self, normalizer):
        from datetime import date

        outcome = normalizer.normalize({}, BASIC_INFO_SCHEMA)

        assert outcome.value["judgeDate"] == date.today().isoformat()

    def test_number_to_string_and_boolean_strings(self, normalizer):
        raw = {"items": [{"name": 2023, "accepted": "false"}]}

        item = normalizer.normalize(raw, EVIDENCE_SCHEMA).value["items"][0]

        assert item["name"] == "2023"
        assert item["accepted"] is False


class TestOutcome:
    def test_from_default(self):
        outcome = ValidationOutcome.from_default(FACTS_SCHEMA, "no JSON")

        assert outcome.source == "default"
        assert outcome.is_default
        assert outcome.value == build_default(FACTS_SCHEMA)
        assert outcome.was_defaulted("summary")

    @pytest.mark.parametrize("raw", [[], None, 2023, "证据"])
    def test_replaced_root_defaults_every_member(self, normalizer, raw):
        outcome = normalizer.normalize(raw, EVIDENCE_SCHEMA)

        assert outcome.source == "model"
        assert outcome.was_defaulted("chainAnalysis")
        assert outcome.was_defaulted("chainAnalysis.analysis")
        assert outcome.was_defaulted("items")

    def test_replaced_member_defaults_its_children(self, normalizer):
        outcome = normalizer.normalize({"chainAnalysis": "完整", "items": []}, EVIDENCE_SCHEMA)

        assert outcome.was_defaulted("chainAnalysis.strength")
        assert not outcome.was_defaulted("items")
        assert not outcome.was_defaulted("chainAnalysisNotes")

        facts = normalizer.normalize({"summary": "签约", "timeline": "签约后付款"}, FACTS_SCHEMA)
        assert facts.was_defaulted("timeline[0].date")
        assert not facts.was_defaulted("summary")

        events = normalizer.normalize({"timeline": [{"date": None, "event": "签约"}]}, FACTS_SCHEMA)
        assert events.was_defaulted("timeline[0].date")
        assert not events.was_defaulted("timeline[0].event")
        assert not events.was_defaulted("timeline")

    def test_schema_check_is_opt_in(self):
        broken = object_field("broken", [enum_field("level", ("a", "b"), default="c")])

        assert ResponseNormalizer().normalize({}, broken).value == {"level": "c"}
        with pytest.raises(SchemaDefinitionError):
            ResponseNormalizer(check_schemas=True).normalize({}, broken)

    def test_schema_check_accepts_valid_schema(self):
        schema = object_field("ok", [string_field("name"), array_field("tags", string_field("*"), split=True)])

        outcome = ResponseNormalizer(check_schemas=True).normalize({"tags": "a,b"}, schema)

        assert outcome.value == {"name": "", "tags": ["a", "b"]}
