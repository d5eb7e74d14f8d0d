"""Tests for JSON payload extraction from model output."""

import pytest

from judgment_ai.core.exceptions import MalformedResponseError
from judgment_ai.utils.json_parser import extract_json_payload, strip_code_fence


class TestStripCodeFence:
    def test_json_fence(self):
        assert strip_code_fence('前言\n```json\n{"a": 1}\n```\n后记') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fence('```\n[1, 2]\n```') == "[1, 2]"

    def test_first_fence_wins(self):
        text = '```json\n{"first": true}\n```\n```json\n{"second": true}\n```'
        assert strip_code_fence(text) == '{"first": true}'

    def test_no_fence_returns_whole_text(self):
        assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'

    def test_unclosed_fence(self):
        assert strip_code_fence('```json\n{"a": 1}') == '{"a": 1}'


class TestExtractJsonPayload:
    def test_plain_json(self):
        assert extract_json_payload('{"summary": "事实"}') == {"summary": "事实"}

    def test_fenced_json_with_commentary(self):
        text = '以下是提取结果：\n```json\n{"summary": "事实"}\n```\n如有疑问请告知。'
        assert extract_json_payload(text) == {"summary": "事实"}

    def test_concatenated_objects_are_merged(self):
        text = '{"keyFacts": ["a"]}\n{"keyFacts": ["b"], "summary": "s"}'
        assert extract_json_payload(text) == {"keyFacts": ["a", "b"], "summary": "s"}

    def test_trailing_garbage(self):
        assert extract_json_payload('{"a": 1} 以上为结果') == {"a": 1}

    def test_embedded_object(self):
        assert extract_json_payload('好的，结果如下 {"a": {"b": 2}} 谢谢') == {"a": {"b": 2}}

    @pytest.mark.parametrize("text", ["", "   ", "```json\n```", "抱歉，我无法完成此任务。", '{"a": 1', "[1, 2"])
    def test_unrecoverable(self, text):
        with pytest.raises(MalformedResponseError):
            extract_json_payload(text)

    @pytest.mark.parametrize("text", [
        "2023年1月，双方签订合同，详见原文。",
        "1. 无法提取证据",
        "100 元货款尚未支付",
        "true 但是没有结果",
    ])
    def test_prose_starting_with_scalar_is_unrecoverable(self, text):
        with pytest.raises(MalformedResponseError):
            extract_json_payload(text)

    def test_prose_before_object_keeps_object(self):
        assert extract_json_payload('2023年的结果：{"summary": "事实"}') == {"summary": "事实"}

    @pytest.mark.parametrize("text,expected", [("null", None), ("42", 42), ('"事实"', "事实")])
    def test_complete_scalar_document(self, text, expected):
        assert extract_json_payload(text) == expected
