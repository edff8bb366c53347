from typing import List

from bundle_size.bundle_analysis.comparison import (
    BundleSnapshotComparison,
    ChangeDirection,
    ComparisonMode,
)
from bundle_size.bundle_analysis.models import BundleSnapshot
from bundle_size.helpers.size import format_bytes, format_size_delta

# Publishers look for this exact string to find the comment to update
BUNDLE_SIZE_COMMENT_MARKER = "<!-- BUNDLE-SIZE-BOT -->"

CHANGE_GLYPHS = {
    ChangeDirection.INCREASE: "🔺",
    ChangeDirection.DECREASE: "🔻",
    ChangeDirection.UNCHANGED: "➖",
}

COMMENT_HEADER = "## 📦 Bundle Size Analysis"
COMMENT_FOOTER = "*Bundle size analysis by bundle-size*"
MISSING_BASE_NOTE = (
    "> **Note**: Could not analyze base branch for comparison. "
    "Showing current bundle sizes only."
)


def _escape_cell(value: str) -> str:
    return value.replace("|", "\\|")


def render_current_table(snapshot: BundleSnapshot) -> List[str]:
    lines = [
        "### Current Bundle Sizes",
        "",
        "| Route | Size | Files |",
        "|-------|------|-------|",
    ]
    for route, stat in snapshot.routes.items():
        lines.append(
            f"| {_escape_cell(route)} | {format_bytes(stat.size)} | {stat.files} |"
        )
    lines.append("")
    lines.append(f"**Total Bundle Size**: {format_bytes(snapshot.total_size)}")
    return lines


def render_comparison_table(comparison: BundleSnapshotComparison) -> List[str]:
    lines = [
        "### Bundle Size Comparison",
        "",
        "| Route | Current | Base | Diff | Change |",
        "|-------|---------|------|------|--------|",
    ]
    for change in comparison.route_changes():
        lines.append(
            "| {route} | {current} | {base} | {delta} | {glyph} |".format(
                route=_escape_cell(change.route_name),
                current=format_bytes(change.current.size),
                base=format_bytes(change.base.size),
                delta=format_size_delta(change.size_delta),
                glyph=CHANGE_GLYPHS[change.direction],
            )
        )
    total_change = comparison.total_change
    lines.append("")
    delta = format_size_delta(total_change.size_delta)
    glyph = CHANGE_GLYPHS[total_change.direction]
    lines.append(
        f"**Total**: {format_bytes(total_change.size_current)} ({delta} {glyph})"
    )
    return lines


def render_comment(comparison: BundleSnapshotComparison) -> str:
    """
    Markdown body of the pull request comment. Always starts with
    `BUNDLE_SIZE_COMMENT_MARKER`.
    """
    lines = [BUNDLE_SIZE_COMMENT_MARKER, "", COMMENT_HEADER, ""]
    if comparison.mode == ComparisonMode.CURRENT_ONLY:
        lines.append(MISSING_BASE_NOTE)
        lines.append("")
        lines.extend(render_current_table(comparison.current))
    else:
        lines.extend(render_comparison_table(comparison))
    lines.extend(["", "---", COMMENT_FOOTER])
    return "\n".join(lines)
