"""Tests for judgment text normalization and section detection."""

import pytest

from judgment_ai.core.exceptions import EmptyDocumentError
from judgment_ai.services.document.text_processor import (
    Document,
    detect_sections,
    normalize_text,
    prepare_document,
)


class TestNormalizeText:
    def test_line_endings(self):
        assert normalize_text("甲\r\n乙\r丙") == "甲\n乙\n丙"

    def test_blank_lines_collapse_to_one(self):
        assert normalize_text("第一行\n\n\n\n第二行") == "第一行\n\n第二行"

    def test_lines_are_trimmed(self):
        assert normalize_text("  原告：张三  \n\t被告：李四") == "原告：张三\n被告：李四"

    def test_full_width_space(self):
        assert normalize_text("　　本院认为") == "本院认为"

    def test_spaced_heading_is_rejoined(self):
        assert normalize_text("民 事 判 决 书") == "民事判决书"

    def test_latin_spacing_is_kept_single(self):
        assert normalize_text("Case   No.  12") == "Case No. 12"

    @pytest.mark.parametrize("footer", ["第1页", "第 12 页", "第三页", "第 2 页 / 共 5 页", "—— 2 ——", "- 3 -", "Page 4 of 9"])
    def test_page_footers_dropped(self, footer):
        assert normalize_text(f"经审理查明\n{footer}\n被告未付款") == "经审理查明\n被告未付款"

    def test_footer_words_inside_text_survive(self):
        assert normalize_text("详见合同第1页约定") == "详见合同第1页约定"


class TestDetectSections:
    def test_sample_sections(self, sample_document):
        sections = sample_document.sections

        assert {"header", "parties", "claims", "arguments", "trial", "facts", "evidence",
                "reasoning", "judgment", "ending"} <= set(sections)
        assert sections["header"].text.startswith("北京市朝阳区人民法院\n民事判决书")
        assert sections["parties"].text.startswith("原告：张三")
        assert sections["facts"].text.startswith("经审理查明")
        assert sections["facts"].text.endswith("被告至今未支付货款。")
        assert sections["reasoning"].text.startswith("本院认为")
        assert sections["judgment"].text.startswith("依照《中华人民共和国民法典》")
        assert sections["ending"].text.startswith("审判员赵六")

    def test_offsets_point_into_normalized_text(self, sample_document):
        text = sample_document.normalized_text

        for section in sample_document.sections.values():
            assert text[section.start:section.end] == section.text
            assert section.found

    def test_absent_sections_are_missing_keys(self):
        sections = detect_sections("北京市朝阳区人民法院\n民事判决书")

        assert set(sections) == {"header"}
        assert "facts" not in sections

    def test_empty_text(self):
        assert detect_sections("") == {}


class TestDocument:
    def test_from_text(self, sample_judgment):
        document = Document.from_text(sample_judgment)

        assert document.raw_text == sample_judgment
        assert "第1页" not in document.normalized_text
        assert document.stats.original_length == len(sample_judgment)
        assert document.stats.normalized_length == len(document.normalized_text)
        assert document.stats.section_count == len(document.sections)
        assert not document.is_blank

    def test_get_section(self, sample_document):
        reasoning = sample_document.get_section("reasoning")

        assert reasoning is sample_document.sections["reasoning"]
        assert reasoning.text.startswith("本院认为")
        assert Document.from_text("民事判决书").get_section("reasoning") is None

    def test_sections_are_read_only(self, sample_document):
        with pytest.raises(TypeError):
            sample_document.sections["facts"] = None

    @pytest.mark.parametrize("text", ["", "   ", "\n\t　\n"])
    def test_blank_document(self, text):
        assert Document.from_text(text).is_blank
        with pytest.raises(EmptyDocumentError):
            prepare_document(text)

    def test_prepare_accepts_document(self, sample_document):
        assert prepare_document(sample_document) is sample_document
