"""Report writers for different formats."""

import html
import json
from datetime import timedelta
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse
import structlog

from unlinked.models import CheckResult, LinkResult, LinkStatus, OutputFormat

logger = structlog.get_logger()

RULE = "-" * 80

HTML_STYLE = """
        body { font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; max-width: 1200px;
               margin: 0 auto; padding: 20px; background: #f5f5f5; line-height: 1.6; }
        .container { background: white; border-radius: 8px; padding: 30px; }
        h1 { color: #333; border-bottom: 3px solid #4CAF50; padding-bottom: 10px; }
        .summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr)); gap: 15px; }
        .stat-card { background: #f9f9f9; padding: 15px; border-radius: 6px; border-left: 4px solid #4CAF50; }
        .stat-card.dead, .link-item.dead { border-left-color: #f44336; }
        .stat-card.error, .link-item.error { border-left-color: #ff9800; }
        .stat-card.redirect, .link-item.redirect { border-left-color: #2196F3; }
        .stat-label { font-size: 12px; color: #666; text-transform: uppercase; }
        .stat-value { font-size: 28px; font-weight: bold; color: #333; }
        .link-item { background: #f9f9f9; margin: 10px 0; padding: 15px; border-radius: 6px;
                     border-left: 4px solid #ccc; }
        .link-url { font-family: monospace; word-break: break-all; font-weight: bold; }
        .link-meta { font-size: 13px; color: #666; margin-top: 8px; }
        .badge { display: inline-block; padding: 3px 8px; border-radius: 3px; font-size: 12px;
                 font-weight: bold; margin-right: 5px; color: white; }
        .badge.dead { background: #f44336; }
        .badge.error { background: #ff9800; }
        .badge.redirect { background: #2196F3; }
"""


def format_duration(duration: timedelta) -> str:
    """Render a duration rounded to milliseconds, e.g. ``1.234s``."""
    return f"{duration.total_seconds():.3f}s"


def _is_web_url(url: str) -> bool:
    try:
        return urlparse(url).scheme in ("http", "https")
    except ValueError:
        return False


def _error_links(result: CheckResult) -> list[LinkResult]:
    return result.by_status(LinkStatus.ERROR) + result.by_status(LinkStatus.TIMEOUT)


class Writer:
    """Renders a CheckResult as plaintext, Markdown, HTML or JSON."""

    @staticmethod
    def render_plaintext(result: CheckResult) -> str:
        """Render a plain text report."""
        lines = [
            "Link Check Report",
            "=================",
            "",
            "Summary:",
            f"  Start Time:    {result.start_time.isoformat()}",
            f"  End Time:      {result.end_time.isoformat()}",
            f"  Duration:      {format_duration(result.duration)}",
            f"  Total Checked: {result.total_checked}",
            f"  OK:            {result.total_ok}",
            f"  Dead:          {result.total_dead}",
            f"  Redirects:     {result.total_redirect}",
            f"  Errors:        {result.total_errors}",
            "",
        ]

        dead = result.by_status(LinkStatus.DEAD)
        if dead:
            lines.extend([f"Dead Links ({len(dead)}):", RULE])
            for link in dead:
                lines.append(f"  [{link.status_code}] {link.url}")
                if link.found_on:
                    lines.append(f"       Found on: {link.found_on}")
            lines.append("")

        errors = _error_links(result)
        if errors:
            lines.extend([f"Errors ({len(errors)}):", RULE])
            for link in errors:
                lines.append(f"  [{link.status.value}] {link.url}")
                if link.found_on:
                    lines.append(f"       Found on: {link.found_on}")
                if link.error:
                    lines.append(f"       Error: {link.error}")
            lines.append("")

        redirects = result.by_status(LinkStatus.REDIRECT)
        if redirects:
            lines.extend([f"Redirects ({len(redirects)}):", RULE])
            for link in redirects:
                lines.append(f"  [{link.status_code}] {link.url}")
                if link.redirect_url:
                    lines.append(f"       -> {link.redirect_url}")
                if link.found_on:
                    lines.append(f"       Found on: {link.found_on}")
            lines.append("")

        return "\n".join(lines)

    @staticmethod
    def render_markdown(result: CheckResult) -> str:
        """Render a Markdown report with a summary table."""
        lines = [
            "# Link Check Report",
            "",
            "## Summary",
            "",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Start Time | {result.start_time.isoformat()} |",
            f"| End Time | {result.end_time.isoformat()} |",
            f"| Duration | {format_duration(result.duration)} |",
            f"| Total Checked | {result.total_checked} |",
            f"| OK | {result.total_ok} |",
            f"| Dead | {result.total_dead} |",
            f"| Redirects | {result.total_redirect} |",
            f"| Errors | {result.total_errors} |",
            "",
        ]

        dead = result.by_status(LinkStatus.DEAD)
        if dead:
            lines.extend([f"## Dead Links ({len(dead)})", ""])
            for link in dead:
                lines.append(f"- **[{link.status_code}]** `{link.url}`")
                if link.found_on:
                    lines.append(f"  - Found on: <{link.found_on}>")
            lines.append("")

        errors = _error_links(result)
        if errors:
            lines.extend([f"## Errors ({len(errors)})", ""])
            for link in errors:
                lines.append(f"- **[{link.status.value}]** `{link.url}`")
                if link.found_on:
                    lines.append(f"  - Found on: <{link.found_on}>")
                if link.error:
                    lines.append(f"  - Error: `{link.error}`")
            lines.append("")

        redirects = result.by_status(LinkStatus.REDIRECT)
        if redirects:
            lines.extend([f"## Redirects ({len(redirects)})", ""])
            for link in redirects:
                lines.append(f"- **[{link.status_code}]** `{link.url}`")
                if link.redirect_url:
                    lines.append(f"  - Redirects to: <{link.redirect_url}>")
                if link.found_on:
                    lines.append(f"  - Found on: <{link.found_on}>")
            lines.append("")

        return "\n".join(lines)

    @staticmethod
    def render_html(result: CheckResult) -> str:
        """Render a standalone HTML page. All link text is escaped."""
        esc = html.escape

        cards = [
            ("", "Total Checked", result.total_checked),
            ("", "OK", result.total_ok),
            ("dead", "Dead", result.total_dead),
            ("redirect", "Redirects", result.total_redirect),
            ("error", "Errors", result.total_errors),
            ("", "Duration", format_duration(result.duration)),
        ]

        parts = [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '    <meta charset="UTF-8">',
            "    <title>Link Check Report</title>",
            f"    <style>{HTML_STYLE}    </style>",
            "</head>",
            "<body>",
            '    <div class="container">',
            "        <h1>Link Check Report</h1>",
            '        <div class="summary">',
        ]
        for css, label, value in cards:
            parts.append(
                f'            <div class="stat-card {css}"><div class="stat-label">{label}</div>'
                f'<div class="stat-value">{value}</div></div>'
            )
        parts.append("        </div>")

        def meta(label: str, url: str) -> str:
            # Only web URLs become links; javascript: and friends stay text
            if _is_web_url(url):
                value = f'<a href="{esc(url)}">{esc(url)}</a>'
            else:
                value = esc(url)
            return f'    <div class="link-meta">{label}: {value}</div>'

        sections = [
            ("dead", "Dead Links", result.by_status(LinkStatus.DEAD)),
            ("error", "Errors", _error_links(result)),
            ("redirect", "Redirects", result.by_status(LinkStatus.REDIRECT)),
        ]
        for css, title, links in sections:
            if not links:
                continue
            parts.append(f"<h2>{title} ({len(links)})</h2>")
            for link in links:
                badge = link.status.value if css == "error" else link.status_code
                parts.append(f'<div class="link-item {css}">')
                parts.append(
                    f'    <div><span class="badge {css}">{badge}</span>'
                    f'<span class="link-url">{esc(link.url)}</span></div>'
                )
                if link.redirect_url:
                    parts.append(meta("Redirects to", link.redirect_url))
                if link.found_on:
                    parts.append(meta("Found on", link.found_on))
                if link.error:
                    parts.append(f'    <div class="link-meta">Error: {esc(link.error)}</div>')
                parts.append("</div>")

        parts.extend(["    </div>", "</body>", "</html>", ""])
        return "\n".join(parts)

    @staticmethod
    def render_json(result: CheckResult) -> str:
        """Render the full result as indented JSON."""
        return json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False)

    @classmethod
    def render(cls, result: CheckResult, output_format: OutputFormat) -> str:
        """Render ``result`` in the requested format."""
        renderers = {
            OutputFormat.PLAINTEXT: cls.render_plaintext,
            OutputFormat.MARKDOWN: cls.render_markdown,
            OutputFormat.HTML: cls.render_html,
            OutputFormat.JSON: cls.render_json,
        }
        return renderers[OutputFormat(output_format)](result)

    @classmethod
    def write(
        cls,
        result: CheckResult,
        output_format: OutputFormat,
        output_path: Optional[Path] = None,
    ) -> str:
        """
        Render a report and optionally write it to a file.

        Args:
            result: Finished check result
            output_format: Report format
            output_path: File to write, nothing is written if None

        Returns:
            The rendered report
        """
        report = cls.render(result, output_format)

        if output_path is not None:
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(report)
            logger.info(
                "wrote_report",
                path=str(output_path),
                format=OutputFormat(output_format).value,
                links=result.total_checked,
            )

        return report
