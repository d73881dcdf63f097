"""Plain-text report of a delivered aggregated order."""

from divesurf_common.schemas import AggregatedResult


def format_report(result: AggregatedResult) -> str:
    stock = result.stock_after
    rows = [
        ("Customer ID", result.customer_id),
        ("First Name", result.first_name),
        ("Last Name", result.last_name),
        ("Overall Items", result.overall_items),
        ("Diving Suits", result.diving_suits),
        ("Surfboards", result.surfboards),
        ("Order ID", result.order_id),
        ("Valid", str(result.valid).lower()),
        ("Validation Result", result.detail),
        ("Credit Score", result.credit_score if result.credit_score is not None else "-"),
        ("Current Surfboards", stock.surfboards if stock else "-"),
        ("Current Suits", stock.diving_suits if stock else "-"),
        ("Total Stock", stock.total if stock else "-"),
    ]
    size = result.size_class.value.capitalize() if result.size_class else "Unrouted"
    lines = [f"=== Aggregated {size} Order ==="]
    lines.extend(f"{label:<18} : {value}" for label, value in rows)
    lines.append("============================")
    return "\n".join(lines)
