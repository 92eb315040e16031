import pytest
from pydantic import ValidationError

from lexcorpus.ingest.schemas import ExternalReference
from lexcorpus.parsing.reference_extractor import (
    classify_reference,
    detect_article,
    eu_document_id,
    extract_references,
    normalize_year,
    year_and_number,
)


def test_regulation_with_community_first():
    refs = extract_references("Phù hợp với Regulation (EU) No 2016/679 về bảo vệ dữ liệu.")
    assert len(refs) == 1
    ref = refs[0]
    assert ref.eu_document_id == "regulation:2016/679"
    assert ref.doc_type == "regulation"
    assert ref.community == "EU"
    assert ref.year == 2016
    assert ref.number == 679


def test_directive_with_community_last_and_two_digit_year():
    refs = extract_references("Tham khảo Directive 95/46/EC khi xây dựng hướng dẫn.")
    assert [r.eu_document_id for r in refs] == ["directive:1995/46"]
    assert refs[0].community == "EC"


def test_bare_reference_defaults_to_eu():
    refs = extract_references("theo Directive 2022/2555")
    assert refs[0].eu_document_id == "directive:2022/2555"
    assert refs[0].community == "EU"


def test_year_pivot():
    assert normalize_year("95") == 1995
    assert normalize_year("50") == 1950
    assert normalize_year("16") == 2016
    assert normalize_year("2016") == 2016


def test_article_detection_and_classification():
    refs = extract_references("Nghị định này được ban hành để implement Regulation (EU) 2016/679, Article 32.")
    assert refs[0].eu_article == "32"
    assert refs[0].reference_type == "implements"
    assert detect_article("không có điều khoản") is None
    assert classify_reference("tham khảo quy định") == "references"
    assert classify_reference("aligned with the GDPR") == "implements"


def test_same_document_and_article_is_deduplicated():
    text = "Regulation (EU) 2016/679 và một lần nữa Regulation (EU) 2016/679."
    assert len(extract_references(text)) == 1


def test_same_document_different_articles_kept():
    text = (
        "Regulation (EU) 2016/679, Article 5 quy định nguyên tắc. "
        + "x" * 300
        + " Regulation (EU) 2016/679, Article 17 quy định quyền xóa."
    )
    refs = extract_references(text)
    assert sorted(r.eu_article for r in refs) == ["17", "5"]


def test_no_references():
    assert extract_references("") == []
    assert extract_references("Luật này không dẫn chiếu văn bản nước ngoài.") == []


def test_eu_document_id_format():
    assert eu_document_id("Regulation", 2016, 679) == "regulation:2016/679"


def test_number_first_citation_is_reordered():
    refs = extract_references("Phân loại hóa chất theo Regulation (EC) No 1907/2006 (REACH).")
    assert [r.eu_document_id for r in refs] == ["regulation:2006/1907"]
    assert (refs[0].year, refs[0].number) == (2006, 1907)
    assert refs[0].community == "EC"
    assert year_and_number("45", "2001") == (2001, 45)
    assert year_and_number("2022", "2555") == (2022, 2555)
    assert year_and_number("95", "46") == (1995, 46)


def test_implausible_years_are_dropped():
    assert extract_references("Regulation (EU) 1900/12 không tồn tại.") == []


def test_one_citation_yields_one_reference():
    # the article pointer sits at the very edge of the context window
    text = "Directive 95/46/EC " + "y" * 109 + " Article 7"
    refs = extract_references(text)
    assert len(refs) == 1
    assert refs[0].eu_document_id == "directive:1995/46"
    assert refs[0].full_citation == "Directive 95/46/EC"
    assert refs[0].eu_article == "7"


@pytest.mark.parametrize("field,value", [("doc_type", "treaty"), ("reference_type", "mentions")])
def test_reference_kinds_are_closed_sets(field, value):
    fields = dict(
        doc_type='regulation', community='EU', year=2016, number=679,
        eu_document_id='regulation:2016/679', full_citation='Regulation (EU) 2016/679',
        reference_context='Regulation (EU) 2016/679', reference_type='references',
    )
    fields[field] = value
    with pytest.raises(ValidationError):
        ExternalReference(**fields)
