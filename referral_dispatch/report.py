from referral_dispatch.schemas import RunReport

HEADERS = ("#", "ACTOR", "ITEM", "RESULT")


def _table(rows: list[tuple[str, ...]]) -> list[str]:
    widths = [max(len(row[col]) for row in [HEADERS, *rows]) for col in range(len(HEADERS))]
    border = "+" + "+".join("-" * (width + 2) for width in widths) + "+"

    def line(row: tuple[str, ...]) -> str:
        return "|" + "|".join(f" {cell.ljust(width)} " for cell, width in zip(row, widths)) + "|"

    return [border, line(HEADERS), border, *(line(row) for row in rows), border]


def render_report(report: RunReport) -> str:
    window = report.window
    if report.is_empty:
        return f"[WARNING] no qualifying records found for {window.label}"

    rows = [
        (str(outcome.sequence_no), str(outcome.actor_id), outcome.item_id, outcome.status.value)
        for outcome in report.outcomes
    ]
    lines = [
        f"Registration dispatch for {window.label}",
        "",
        *_table(rows),
        "",
        f"[OK] processing complete, {report.total} items "
        f"(registered={report.registered} errors={report.errors})",
    ]
    return "\n".join(lines)
