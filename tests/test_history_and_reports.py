"""
Tests for the history store and printable reports.
"""

import pytest

from aether.models.records import Domain
from aether.services.history_store import HistoryStore, HistoryStoreError
from aether.services.report_generator import ReportGenerator, radiology_severity
from aether.services.response_parser import parse


@pytest.fixture
def store(tmp_path):
    return HistoryStore(root=tmp_path)


class TestHistoryStore:
    """Test the JSON document store."""

    def test_save_and_get(self, store, tmp_path):
        doc_id = store.save("diagnoses/alice/sessions", {"summary": "Flu check"})
        document = store.get("diagnoses/alice/sessions", doc_id)

        assert document["id"] == doc_id
        assert document["summary"] == "Flu check"
        assert "created_at" in document
        assert (tmp_path / "diagnoses" / "alice" / "sessions" / f"{doc_id}.json").is_file()

    def test_missing_document(self, store):
        assert store.get("diagnoses/alice/sessions", "nope") is None

    def test_list_is_newest_first_and_per_user(self, store):
        first = store.save("radiology/alice/sessions", {"summary": "first"})
        second = store.save("radiology/alice/sessions", {"summary": "second"})
        store.save("radiology/bob/sessions", {"summary": "other user"})

        ids = [document["id"] for document in store.list("radiology/alice/sessions")]
        assert set(ids) == {first, second}
        assert len(store.list("radiology/bob/sessions")) == 1

    def test_empty_collection(self, store):
        assert store.list("prescriptions/nobody/sessions") == []

    @pytest.mark.parametrize("path", ["diagnoses/../etc/sessions", "diagnoses//sessions", "a/b c/d"])
    def test_unsafe_collection_path(self, store, path):
        with pytest.raises(HistoryStoreError):
            store.save(path, {})

    def test_unsafe_document_id(self, store):
        with pytest.raises(HistoryStoreError):
            store.get("diagnoses/alice/sessions", "../secret")


class TestRadiologySeverity:
    """Test keyword severity classes."""

    @pytest.mark.parametrize("condition, expected", [
        ("Right lower lobe pneumonia", "severe"),
        ("Possible pleural Effusion", "severe"),
        ("Patchy opacity in left base", "moderate"),
        ("Atelectasis", "moderate"),
        ("No acute cardiopulmonary process", "normal"),
    ])
    def test_classification(self, condition, expected):
        assert radiology_severity(condition) == expected


class TestReportGenerator:
    """Test HTML rendering."""

    def test_diagnosis_report(self):
        record = parse(Domain.DIAGNOSIS, "✅ Conditions:\n• Influenza - Confidence: High (80%)")
        html = ReportGenerator().generate_html(Domain.DIAGNOSIS, record, report_id="abc123")

        assert "Symptom Analysis Report" in html
        assert "Influenza" in html
        assert "(80%)" in html
        assert "abc123" in html
        assert "(no details extracted)" in html

    def test_radiology_report_marks_severity(self):
        record = parse(Domain.RADIOLOGY, "🩺 Conditions:\n• Lobar pneumonia\n• Mild opacity")
        html = ReportGenerator().generate_html(Domain.RADIOLOGY, record)

        assert "severity-severe" in html
        assert "severity-moderate" in html

    def test_content_is_escaped(self):
        record = parse(Domain.PRESCRIPTION, "🔍 Diagnosis: <script>alert(1)</script>")
        html = ReportGenerator().generate_html(Domain.PRESCRIPTION, record)

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_report_from_saved_document(self, store):
        record = parse(Domain.PRESCRIPTION, "🧾 Medicines:\n• Pan 40 – 1 tablet")
        doc_id = store.save(
            "prescriptions/alice/sessions",
            {"summary": "Analysis of 1 medicines", "record": record.model_dump(mode="json")}
        )
        document = store.get("prescriptions/alice/sessions", doc_id)

        html = ReportGenerator().generate_from_document(Domain.PRESCRIPTION, document)

        assert "Pan 40" in html
        assert "Analysis of 1 medicines" in html
        assert doc_id in html
