import pytest

from fileflow.recipients import AddOutcome, RecipientSet


@pytest.mark.parametrize("candidate", ["a@b.co", "first.last@example.com", "x+tag@sub.domain.org"])
def test_validate_accepts_simple_addresses(candidate):
    assert RecipientSet.validate(candidate) is True


@pytest.mark.parametrize("candidate", ["", "plainaddress", "no-at.example.com", "user@nodot", "a b@c.com", "a@@b.com"])
def test_validate_rejects_malformed_addresses(candidate):
    assert RecipientSet.validate(candidate) is False


def test_add_normalizes_and_is_idempotent():
    recipients = RecipientSet()
    assert recipients.add("  Alice@Example.COM ") is AddOutcome.ADDED
    assert recipients.add("alice@example.com") is AddOutcome.DUPLICATE
    assert recipients.add("ALICE@example.com  ") is AddOutcome.DUPLICATE
    assert recipients.as_list() == ["alice@example.com"]


def test_add_rejects_invalid_and_blank_without_changes():
    recipients = RecipientSet(["bob@example.com"])
    assert recipients.add("not-an-email") is AddOutcome.INVALID
    assert recipients.add("   ") is AddOutcome.EMPTY
    assert recipients.as_list() == ["bob@example.com"]


def test_parse_many_mixed_separators():
    recipients = RecipientSet()
    report = recipients.parse_many("a@b.com, c@d.com; e@f.com\ninvalid")

    assert report.added == ["a@b.com", "c@d.com", "e@f.com"]
    assert report.invalid == ["invalid"]
    assert report.rejected_count == 1
    assert recipients.as_list() == ["a@b.com", "c@d.com", "e@f.com"]


def test_parse_many_reports_duplicates():
    recipients = RecipientSet(["a@b.com"])
    report = recipients.parse_many("A@B.com a@b.com g@h.io")

    assert report.added == ["g@h.io"]
    assert report.duplicates == ["a@b.com", "a@b.com"]
    assert len(recipients) == 2


def test_remove_and_remove_last():
    recipients = RecipientSet(["a@b.com", "c@d.com", "e@f.com"])
    recipients.remove("c@d.com")
    recipients.remove("missing@x.com")
    assert recipients.as_list() == ["a@b.com", "e@f.com"]

    assert recipients.remove_last() == "e@f.com"
    assert recipients.remove_last() == "a@b.com"
    assert recipients.remove_last() is None
    assert not recipients


def test_contains_uses_normalized_form():
    recipients = RecipientSet(["a@b.com"])
    assert " A@B.COM" in recipients
    assert 42 not in recipients


def test_insertion_order_is_kept():
    recipients = RecipientSet(["z@z.com", "a@a.com", "m@m.com"])
    assert list(recipients) == ["z@z.com", "a@a.com", "m@m.com"]
