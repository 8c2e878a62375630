"""build_submission tests — answers map to the submission body."""

import pytest

from appgram_surveys.assembler import build_submission
from appgram_surveys.models.answer import Answer


class TestBuildSubmission:
    def test_one_record_per_answered_node(self):
        answers = {
            "n1": Answer.yes_no(False),
            "n2": Answer.text("hello"),
            "n3": Answer.options(["a", "c"]),
            "n4": Answer.rating(3),
        }
        payload = build_submission(answers, "s1", "fp")
        assert payload.survey_id == "s1"
        assert [a.node_id for a in payload.answers] == ["n1", "n2", "n3", "n4"]

    def test_only_populated_fields_on_the_wire(self):
        answers = {
            "n1": Answer.yes_no(False),
            "n2": Answer.text("hello"),
            "n3": Answer.options(["a", "c"]),
            "n4": Answer.rating(3),
        }
        wire = build_submission(answers, "s1", "fp").to_wire()
        assert wire["answers"] == [
            {"node_id": "n1", "answer": False},
            {"node_id": "n2", "answer_text": "hello"},
            {"node_id": "n3", "answer_options": ["a", "c"]},
            {"node_id": "n4", "answer_rating": 3},
        ]

    def test_survey_id_not_in_body(self):
        wire = build_submission({}, "s1", "fp").to_wire()
        assert "survey_id" not in wire
        assert wire == {"fingerprint": "fp", "answers": []}

    def test_skips_empty_and_missing_answers(self):
        answers = {"n1": Answer(), "n2": None, "n3": Answer.text("")}
        payload = build_submission(answers, "s1", "fp")
        # an empty string is still an answer
        assert [a.node_id for a in payload.answers] == ["n3"]

    def test_optional_attribution(self):
        payload = build_submission(
            {"n1": Answer.rating(1)}, "s1", "fp",
            external_user_id="user-42", metadata={"source": "web"},
        )
        wire = payload.to_wire()
        assert wire["external_user_id"] == "user-42"
        assert wire["metadata"] == {"source": "web"}

    def test_empty_fingerprint_rejected(self):
        with pytest.raises(ValueError, match="fingerprint"):
            build_submission({"n1": Answer.rating(1)}, "s1", "")
