"""
Tests for the keyword classifier and decision explanations.
"""

import pytest

from medprice.models.enums import ReportCategory
from medprice.scoring.classifier import auto_classify
from medprice.scoring.explain import generate_explanation


class TestAutoClassify:

    @pytest.mark.parametrize(
        "content,expected",
        [
            ("도수치료 가격이 올랐어요", ReportCategory.PRICE_ERROR),
            ("The FEE listed is wrong", ReportCategory.PRICE_ERROR),
            ("병원 주소가 바뀌었습니다", ReportCategory.INFO_UPDATE),
            ("clinic moved last month", ReportCategory.INFO_UPDATE),
            ("토요일 진료 시간이 변경됨", ReportCategory.OPERATION_CHANGE),
            ("closed on sundays now", ReportCategory.OPERATION_CHANGE),
            ("좋은 병원입니다", ReportCategory.OTHER),
            ("", ReportCategory.OTHER),
            (None, ReportCategory.OTHER),
        ],
    )
    def test_keywords(self, content, expected):
        assert auto_classify(content) == expected

    def test_first_matching_category_wins(self):
        assert auto_classify("이사 후 가격도 바뀜") == ReportCategory.PRICE_ERROR


class TestExplanation:

    def test_high_scores(self):
        text = generate_explanation(95, 0, 40, "normal")
        assert "high" in text
        assert "Duplicate risk is low." in text
        assert "specific enough" in text

    def test_duplicate_block_mentioned(self):
        text = generate_explanation(100, 70, 40)
        assert "blocks automatic processing" in text

    def test_partial_duplicates(self):
        text = generate_explanation(60, 30, 15)
        assert "not enough to block" in text
        assert "short but acceptable" in text

    def test_short_low_score(self):
        text = generate_explanation(20, 0, 5)
        assert "low" in text
        assert "too short" in text

    def test_high_priority_note(self):
        assert "Priority is HIGH" in generate_explanation(80, 0, 40, "high")

    def test_missing_priority_reads_as_normal(self):
        assert "Priority is normal" in generate_explanation(80, 0, 40, None)
