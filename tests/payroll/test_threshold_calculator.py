from decimal import Decimal

from src.fleet_dispatch.fleet_dispatch.core.enums import IssueKind
from src.fleet_dispatch.fleet_dispatch.payroll.calculator.threshold_calculator import (
    ThresholdPayCalculator,
    find_overlaps,
    split_by_bands,
)
from src.fleet_dispatch.fleet_dispatch.payroll.policy import OvertimePolicy, PolicyBook

from tests.fakes import RATES, duty


def _generate(duties, *, policy=None, rates=None):
    rates = RATES if rates is None else rates
    return ThresholdPayCalculator().generate(
        employee_id="E1",
        duties=duties,
        rate_for=rates.get,
        policy=policy or OvertimePolicy(),
    )


def _by_code(result):
    out = {}
    for line in result.lines:
        out[line.pay_type_code] = out.get(line.pay_type_code, Decimal("0")) + line.hours
    return out


def test_nine_hour_duty_splits_into_standard_and_overtime():
    result = _generate([duty("d1", "E1", 6, 15)])

    assert result.ok
    assert [(l.pay_type_code, l.hours) for l in result.lines] == [("STD", Decimal("7.6")), ("OT", Decimal("1.4"))]
    assert result.lines[0].amount == Decimal("228.00")
    assert result.lines[1].amount == Decimal("63.00")
    assert sum(l.amount for l in result.lines) == Decimal("7.6") * RATES["STD"] + Decimal("1.4") * RATES["OT"]


def test_threshold_uses_cumulative_hours_across_duties():
    result = _generate([duty("d2", "E1", 13, 17), duty("d1", "E1", 6, 12)])

    assert [(l.duty_instance_id, l.pay_type_code, l.hours) for l in result.lines] == [
        ("d1", "STD", Decimal("6")),
        ("d2", "STD", Decimal("1.6")),
        ("d2", "OT", Decimal("2")),
        ("d2", "DT", Decimal("0.4")),
    ]


def test_hours_are_conserved_over_billable_duties():
    duties = [
        duty("d1", "E1", "5.25", "9.75"),
        duty("d2", "E1", "9.75", "10.25", duty_type="break"),
        duty("d3", "E1", "10.25", "14.5"),
        duty("d4", "E1", "15", "18.3", pay_type="PEN"),
        duty("d5", "E1", "18.3", "19", duty_type="waiting"),
    ]
    result = _generate(duties)

    billable = Decimal("4.5") + Decimal("4.25") + Decimal("3.3")
    assert result.ok
    assert result.total_hours == billable


def test_non_billable_duties_produce_no_lines():
    result = _generate(
        [
            duty("d1", "E1", 6, 10),
            duty("brk", "E1", 10, "10.5", duty_type="break"),
            duty("d2", "E1", "10.5", 15),
            duty("unp", "E1", 15, 16, pay_type="UNP"),
        ]
    )

    assert {l.duty_instance_id for l in result.lines} == {"d1", "d2"}
    assert _by_code(result) == {"STD": Decimal("7.6"), "OT": Decimal("0.9")}


def test_explicit_pay_type_is_single_line_but_counts_toward_thresholds():
    result = _generate([duty("pen", "E1", 6, 14, pay_type="PEN"), duty("d1", "E1", 14, 16)])

    assert [(l.duty_instance_id, l.pay_type_code, l.hours) for l in result.lines] == [
        ("pen", "PEN", Decimal("8")),
        ("d1", "OT", Decimal("1.6")),
        ("d1", "DT", Decimal("0.4")),
    ]


def test_overlapping_duties_reported_without_lines():
    result = _generate([duty("d1", "E1", 6, 10), duty("d2", "E1", "9.5", 12)])

    assert not result.ok
    assert result.lines == []
    assert [i.kind for i in result.issues] == [IssueKind.OVERLAPPING_DUTIES]
    assert result.issues[0].duty_instance_id == "d2"


def test_back_to_back_duties_do_not_overlap():
    assert find_overlaps([duty("d1", "E1", 6, 10), duty("d2", "E1", 10, 12)]) == []


def test_overlap_check_includes_non_billable_duties():
    result = _generate([duty("d1", "E1", 6, 10), duty("brk", "E1", 9, "9.5", duty_type="break")])

    assert [i.kind for i in result.issues] == [IssueKind.OVERLAPPING_DUTIES]


def test_missing_rate_is_a_line_issue_not_an_exception():
    rates = {"STD": Decimal("30.00")}
    result = _generate([duty("d1", "E1", 6, 15)], rates=rates)

    assert not result.ok
    assert [(i.kind, i.pay_type_code) for i in result.issues] == [(IssueKind.MISSING_RATE, "OT")]
    ot = [l for l in result.lines if l.pay_type_code == "OT"][0]
    assert ot.rate is None and ot.amount is None


def test_zero_length_duties_are_ignored():
    result = _generate([duty("d1", "E1", 8, 8), duty("d2", "E1", 8, 9)])

    assert [l.duty_instance_id for l in result.lines] == ["d2"]


def test_amount_rounds_half_up_to_cents():
    result = _generate([duty("d1", "E1", 0, "0.25")], rates={"STD": Decimal("30.10")})

    # 0.25 * 30.10 = 7.525
    assert result.lines[0].amount == Decimal("7.53")


def test_split_by_bands_open_ended_double_time():
    parts = split_by_bands(Decimal("9"), Decimal("12"), OvertimePolicy())

    assert parts == [("OT", Decimal("0.6")), ("DT", Decimal("2.4"))]


def test_per_employee_override_changes_thresholds():
    book = PolicyBook.from_settings({"standard_hours": "7.6"}, {"E1": {"standard_hours": "8"}})
    result = _generate([duty("d1", "E1", 6, 15)], policy=book.for_employee("E1"))

    assert _by_code(result) == {"STD": Decimal("8"), "OT": Decimal("1")}
    assert book.for_employee("E2").standard_hours == Decimal("7.6")
