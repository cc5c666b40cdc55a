"""Tests for response parsing and candidate extraction."""

import pytest

from card_catalog.core.types import ClassificationTags, TransportFailure
from card_catalog.resolve.extract import count_collectibles, extract, object_category, ocr_keywords
from card_catalog.resolve.parse import coerce_candidate, coerce_tags, first_record, record_succeeded


class TestParse:
    """Test the defensive parsing helpers."""

    def test_first_record(self):
        assert first_record({"records": [None, {"a": 1}]}) == {"a": 1}
        assert first_record({"records": "nope"}) is None
        assert first_record(None) is None
        assert first_record(TransportFailure("SPORT_ID", "HTTP 500", 500)) is None

    @pytest.mark.parametrize("record, expected", [
        ({}, True),
        ({"_status": {"code": 200}}, True),
        ({"_status": {"text": "OK"}}, True),
        ({"_status": {"code": 400, "text": "Bad image"}}, False),
        ({"_status": {"code": "500"}}, False),
        (None, False),
    ])
    def test_record_succeeded(self, record, expected):
        assert record_succeeded(record) is expected

    def test_coerce_candidate_keeps_variants(self):
        candidate = coerce_candidate({
            "name": "  Ken Griffey Jr. ",
            "year": 1989.0,
            "set": "Upper Deck",
            "number": 1,
            "type": "Rookie",
            "links": {"ebay": "https://ebay.com", "bad": 3},
            "pricing": {"avg": 10},
        })
        assert candidate.name == "Ken Griffey Jr."
        assert candidate.year == 1989
        assert candidate.set == "Upper Deck"
        assert candidate.number == "1"
        assert candidate.card_number is None
        assert candidate.card_type == "Rookie"
        assert candidate.links == {"ebay": "https://ebay.com"}
        assert candidate.pricing == {"avg": 10}

    def test_coerce_candidate_rejects_non_dict(self):
        assert coerce_candidate("Charizard") is None
        assert coerce_candidate(None) is None

    def test_coerce_candidate_drops_non_scalar_text(self):
        candidate = coerce_candidate({"name": ["x"], "year": True, "team": {"a": 1}})
        assert candidate.name is None
        assert candidate.year is None
        assert candidate.team is None

    def test_coerce_tags(self):
        tags = coerce_tags({"_tags": {
            "Grade": [{"name": "9", "prob": 0.9}],
            "company": [{"name": "PSA"}],
            "Subcategory": [{"name": "Baseball"}],
        }})
        assert tags == ClassificationTags(grade="9", company="PSA", subcategory="Baseball")

    def test_coerce_tags_absent(self):
        assert coerce_tags({"_tags": {"Side": [{"name": "front"}]}}) is None
        assert coerce_tags({"name": "Card"}) is None


class TestExtract:
    """Test candidate extraction from a response."""

    def test_best_match_then_alternatives_in_order(self, make_response, card_object):
        response = make_response([card_object(
            best={"name": "A"},
            alternatives=[{"name": "B"}, "junk", {"name": "C"}],
            tags={"Grade": [{"name": "10"}]},
        )])
        extraction = extract(response)
        assert [c.name for c in extraction.candidates] == ["A", "B", "C"]
        assert extraction.has_best_match is True
        assert extraction.tags.grade == "10"

    def test_prefers_named_collectible_object(self, make_response, card_object):
        response = make_response([
            card_object(best={"name": "Sticker"}, name="Sticker"),
            card_object(best={"name": "Real Card"}, name="Card"),
        ])
        assert extract(response).candidates[0].name == "Real Card"

    def test_comics_object_is_a_collectible(self, make_response, card_object):
        response = make_response([card_object(best={"title": "Amazing Spider-Man #300"}, name="Comics")])
        assert extract(response).candidates[0].title == "Amazing Spider-Man #300"

    def test_falls_back_to_first_identified_object(self, make_response, card_object):
        response = make_response([
            {"name": "Hand"},
            card_object(alternatives=[{"name": "Alt Only"}], name="Unknown"),
        ])
        extraction = extract(response)
        assert [c.name for c in extraction.candidates] == ["Alt Only"]
        assert extraction.has_best_match is False

    def test_no_objects_is_empty_not_error(self, make_response):
        extraction = extract(make_response([]))
        assert extraction.candidates == []
        assert extraction.tags is None

    def test_failed_status_is_empty(self, make_response, card_object):
        response = make_response([card_object(best={"name": "A"})], code=500)
        assert extract(response).candidates == []

    @pytest.mark.parametrize("raw", [None, {}, {"records": []}, TransportFailure("ANALYZE", "boom")])
    def test_malformed_responses(self, raw):
        assert extract(raw).candidates == []


class TestClassificationHelpers:
    """Test category, object count and OCR keyword helpers."""

    def test_object_category(self, make_response):
        assert object_category(make_response([{"name": "Comics"}])) == "comics"
        assert object_category(make_response([{"name": "Hand"}, {"name": "Card"}])) == "card"
        assert object_category(make_response([{"name": "Hand"}])) == "hand"
        assert object_category(make_response([])) is None
        assert object_category(None) is None

    def test_count_collectibles(self, make_response):
        response = make_response([{"name": "Card"}, {"name": "Card"}, {"name": "Hand"}])
        assert count_collectibles(response) == 2
        assert count_collectibles(None) == 0

    def test_ocr_keywords(self, make_response, card_object):
        obj = card_object(best={"name": "Shohei Ohtani"}, alternatives=[{"full_name": "Shohei  Ohtani RC"}])
        obj["_ocr"] = {"texts": [{"text": "TOPPS CHROME"}, {"text": "17"}, {"text": "shohei ohtani"}]}
        assert ocr_keywords(make_response([obj])) == ["shohei ohtani", "shohei ohtani rc", "topps chrome"]

    def test_ocr_keywords_on_failure(self):
        assert ocr_keywords(None) == []
        assert ocr_keywords(TransportFailure("CARD_OCR_ID", "HTTP 401", 401)) == []
