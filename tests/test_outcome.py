import logging

from stairval.notepad import create_notepad

from sifhiv.outcome import ParseOutcome, ParseTally


def test_parse_outcome_ok():
    assert ParseOutcome.success(4).ok
    assert ParseOutcome.success(4).value == 4
    bad = ParseOutcome.failure("unrecognized date")
    assert not bad.ok
    assert bad.value is None


def test_tally_counts_failures_but_not_blanks():
    tally = ParseTally()
    tally.record("admission_date", ParseOutcome.success("x"))
    tally.record("admission_date", ParseOutcome.failure("missing"))
    tally.record("admission_date", ParseOutcome.failure("unrecognized date"))
    tally.record("admission_date", ParseOutcome.failure("unrecognized date"))

    assert tally.failures("admission_date") == 2
    assert tally.missing("admission_date") == 1
    assert tally.failures("vdrl") == 0


def test_tally_report_adds_one_warning_per_field():
    tally = ParseTally()
    tally.record("age", ParseOutcome.failure("not numeric"))
    tally.record("vdrl", ParseOutcome.failure("missing"))

    notepad = create_notepad("report")
    tally.report(notepad)

    messages = [w.message for w in notepad.warnings()]
    assert len(messages) == 1
    assert "'age'" in messages[0]
    assert "not numeric (1)" in messages[0]
    assert not notepad.has_errors(include_subsections=True)


def test_tally_report_logs_blank_and_unparsable_counts(caplog):
    tally = ParseTally()
    tally.record("vdrl", ParseOutcome.failure("missing"))
    tally.record("vdrl", ParseOutcome.failure("missing"))
    tally.record("vdrl", ParseOutcome.failure("not a titration"))

    with caplog.at_level(logging.DEBUG, logger="sifhiv.outcome"):
        tally.report(create_notepad("report"))

    assert "Field 'vdrl': 2 blank, 1 unparsable" in caplog.text
