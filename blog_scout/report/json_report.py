# blog_scout/report/json_report.py

"""
JSON report generation for BlogScout.

Serializes a ScoutReport to a file.
"""
from pathlib import Path

from blog_scout.aggregator import ScoutReport


def render_json(report: ScoutReport, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Save *report* as JSON at *output_path*.

    :param report: ScoutReport with discovery (and optionally batch) results
    :param output_path: path of the JSON file, parent folders are created
    :param pretty: indent the output by two spaces
    :return: Path of the written file

    Example:
    ```python
    from blog_scout.report.json_report import render_json
    report_path = render_json(report, 'reports/example.com.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(report.json(pretty=pretty), encoding="utf-8")
    return output
