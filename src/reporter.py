"""Run report generation with an Excel workbook and an interactive HTML dashboard.

This module turns suite results into:
- An Excel workbook with per-scenario results, per-suite summary and failures
- An interactive Plotly dashboard showing outcomes and scenario durations

Design Rationale:
    A run is usually inspected by someone who did not launch it. Both
    outputs are self-contained files that open without Python installed.
"""

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from config.settings import GlobalConfig, get_config
from src.exceptions import ReportGenerationError
from src.logger import get_logger
from src.scenarios import SuiteResult

log = get_logger(__name__)

OUTCOME_COLORS = {
    "passed": "#27ae60",
    "failed": "#e74c3c",
    "error": "#f39c12",
}

RESULT_COLUMNS = ["suite", "scenario_id", "title", "outcome", "duration_ms", "error_type", "message"]


class ReportGenerator:
    """Generates Excel and HTML reports from suite results.

    Attributes:
        config: GlobalConfig instance for output paths.
        _timestamp: Report generation timestamp for file naming.

    Example:
        reporter = ReportGenerator()
        paths = reporter.generate_all([currency_result, stock_result])
    """

    def __init__(self, config: GlobalConfig | None = None) -> None:
        self.config = config or get_config()
        self._timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")

    def _ensure_output_dir(self) -> Path:
        """Ensure output directory exists and return path.

        Raises:
            ReportGenerationError: If directory cannot be created.
        """
        try:
            self.config.output_dir.mkdir(parents=True, exist_ok=True)
            return self.config.output_dir
        except OSError as exc:
            raise ReportGenerationError(
                report_type="output_directory",
                reason=f"Cannot create output directory: {exc}",
                output_path=str(self.config.output_dir),
            ) from exc

    def results_to_dataframe(self, results: list[SuiteResult]) -> pd.DataFrame:
        """Flatten suite results into one row per scenario."""
        records = [
            scenario_result.model_dump(include=set(RESULT_COLUMNS))
            for suite_result in results
            for scenario_result in suite_result.results
        ]
        return pd.DataFrame(records, columns=RESULT_COLUMNS)

    def summarize(self, results: list[SuiteResult]) -> pd.DataFrame:
        """Build the per-suite summary table."""
        rows: list[dict[str, Any]] = [
            {
                "Suite": r.suite,
                "Endpoint": r.endpoint,
                "Scenarios": r.total,
                "Passed": r.passed_count,
                "Failed": r.failed_count,
                "Errors": r.error_count,
                "Pass Rate": f"{r.pass_rate:.1%}",
                "Started": r.started_at.isoformat(),
                "Finished": r.finished_at.isoformat(),
            }
            for r in results
        ]
        return pd.DataFrame(rows)

    def _require_rows(self, df: pd.DataFrame, report_type: str, output_path: Path) -> None:
        if len(df) == 0:
            raise ReportGenerationError(
                report_type=report_type,
                reason="No scenario results to report",
                output_path=str(output_path),
            )

    def generate_excel(
        self,
        results: list[SuiteResult],
        filename: str | None = None,
    ) -> Path:
        """Generate an Excel workbook with Results, Summary and Failures sheets.

        Args:
            results: Suite results of the run.
            filename: Optional custom filename (without extension).

        Returns:
            Path to the generated Excel file.

        Raises:
            ReportGenerationError: If there is nothing to report or writing fails.
        """
        output_dir = self._ensure_output_dir()
        filename = filename or f"vantagecheck_results_{self._timestamp}"
        output_path = output_dir / f"{filename}.xlsx"

        log.info("Generating Excel report", output_path=str(output_path))

        df = self.results_to_dataframe(results)
        self._require_rows(df, "Excel", output_path)

        try:
            with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
                df.to_excel(writer, sheet_name="Results", index=False)
                self.summarize(results).to_excel(writer, sheet_name="Summary", index=False)

                failures = df[df["outcome"] != "passed"]
                failures.to_excel(writer, sheet_name="Failures", index=False)

            log.info(
                "Excel report generated successfully",
                output_path=str(output_path),
                scenarios=len(df),
            )
            return output_path

        except Exception as exc:
            raise ReportGenerationError(
                report_type="Excel",
                reason=str(exc),
                output_path=str(output_path),
            ) from exc

    def generate_dashboard(
        self,
        results: list[SuiteResult],
        filename: str | None = None,
    ) -> Path:
        """Generate a standalone HTML dashboard with Plotly.

        Charts:
        - Overall outcome pie
        - Outcomes per suite (stacked bars)
        - Duration per scenario, coloured by outcome

        Raises:
            ReportGenerationError: If there is nothing to report or rendering fails.
        """
        output_dir = self._ensure_output_dir()
        filename = filename or f"vantagecheck_dashboard_{self._timestamp}"
        output_path = output_dir / f"{filename}.html"

        log.info("Generating HTML dashboard", output_path=str(output_path))

        df = self.results_to_dataframe(results)
        self._require_rows(df, "Dashboard", output_path)

        try:
            fig = make_subplots(
                rows=2,
                cols=2,
                subplot_titles=(
                    "Overall Outcomes",
                    "Outcomes per Suite",
                    "Scenario Durations (ms)",
                ),
                specs=[
                    [{"type": "pie"}, {"type": "bar"}],
                    [{"type": "bar", "colspan": 2}, None],
                ],
                vertical_spacing=0.15,
                horizontal_spacing=0.1,
            )

            outcome_counts = df["outcome"].value_counts()
            fig.add_trace(
                go.Pie(
                    labels=outcome_counts.index.tolist(),
                    values=outcome_counts.values.tolist(),
                    marker_colors=[OUTCOME_COLORS[o] for o in outcome_counts.index],
                    hovertemplate="%{label}: %{value} (%{percent})<extra></extra>",
                ),
                row=1,
                col=1,
            )

            per_suite = df.groupby(["suite", "outcome"]).size().unstack(fill_value=0)
            for outcome, color in OUTCOME_COLORS.items():
                if outcome not in per_suite.columns:
                    continue
                fig.add_trace(
                    go.Bar(
                        x=per_suite.index.tolist(),
                        y=per_suite[outcome].tolist(),
                        name=outcome,
                        marker_color=color,
                        hovertemplate="%{x}: %{y} " + outcome + "<extra></extra>",
                    ),
                    row=1,
                    col=2,
                )

            labels = df["suite"] + " " + df["scenario_id"]
            fig.add_trace(
                go.Bar(
                    x=labels,
                    y=df["duration_ms"],
                    marker_color=[OUTCOME_COLORS[o] for o in df["outcome"]],
                    text=df["outcome"],
                    textposition="auto",
                    customdata=df["title"],
                    hovertemplate="<b>%{x}</b><br>%{customdata}<br>%{y:.0f} ms<extra></extra>",
                ),
                row=2,
                col=1,
            )

            passed = int((df["outcome"] == "passed").sum())
            fig.update_layout(
                title={
                    "text": (
                        f"<b>VantageCheck Run</b><br>"
                        f"<sup>Endpoint: {self.config.base_url} | "
                        f"Passed: {passed}/{len(df)} | "
                        f"Generated: {datetime.now(UTC).strftime('%Y-%m-%d %H:%M UTC')}</sup>"
                    ),
                    "x": 0.5,
                    "xanchor": "center",
                },
                barmode="stack",
                showlegend=False,
                height=800,
                template="plotly_white",
                font={"family": "Arial, sans-serif"},
            )
            fig.update_yaxes(title_text="Scenarios", row=1, col=2)
            fig.update_yaxes(title_text="Duration (ms)", row=2, col=1)

            fig.write_html(
                str(output_path),
                include_plotlyjs=True,
                full_html=True,
            )

            log.info(
                "HTML dashboard generated successfully",
                output_path=str(output_path),
                scenarios=len(df),
            )
            return output_path

        except Exception as exc:
            raise ReportGenerationError(
                report_type="Dashboard",
                reason=str(exc),
                output_path=str(output_path),
            ) from exc

    def generate_all(self, results: list[SuiteResult]) -> dict[str, Path]:
        """Generate both the Excel workbook and the HTML dashboard."""
        return {
            "excel": self.generate_excel(results),
            "dashboard": self.generate_dashboard(results),
        }
