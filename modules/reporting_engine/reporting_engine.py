import logging
import matplotlib
matplotlib.use("Agg")  # Ensure non-interactive backend
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List

from modules.base.base_engine import BaseEngine
from modules.reporting_engine.performance_table import PerformanceTable
from utils import constants
from utils.error_handling import handle_engine_errors
from utils.file_io import save_dataframe, save_json, save_text


class ReportingEngine(BaseEngine):
    """
    Writes the artifacts of a finished grid search.

    - Long-format metric table of every pass (Parquet, optional Excel copy).
    - Gnuplot data/script for the optimised metric, one block per pass.
    - Heatmap of the initial pass.
    - ``search_summary.json`` with the best point and search counters.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)
        self.outputs = config.get('outputs', {})
        self.dpi = self.outputs.get('dpi', 200)

    def _get_engine_directory_name(self) -> str:
        return constants.SEARCH_REPORT_DIR

    @contextmanager
    def _plot_context(self):
        original_rcParams = plt.rcParams.copy()
        try:
            sns.set_theme(style="white")
            yield
        finally:
            plt.rcParams.update(original_rcParams)
            plt.close('all')

    @handle_engine_errors("Reporting")
    def execute(self, result: Any, metric: Any, run_id: str = "", title: str = "dataset") -> Dict[str, Path]:
        """
        Write all report artifacts for ``result``.

        Args:
            result: SearchResult of the finished search.
            metric: The optimised Metric.
            run_id: Run identifier stored in the summary.
            title: Dataset name used in plot titles.

        Returns:
            Mapping of artifact name to written path.
        """
        if not self.writes_enabled:
            self.logger.info("Output writing disabled; skipping reports.")
            return {}

        self.logger.info("Writing grid search reports...")
        artifacts = {}

        artifacts['pass_table'] = save_dataframe(
            self.build_pass_frame(result.passes),
            self.output_dir / constants.PASS_TABLE_FILE,
            excel_copy=self.outputs.get('save_excel_copy', False),
        )

        x_property, y_property = self._properties()
        gnuplot = "\n\n".join(
            f"# pass {p.number} ({p.folds}-fold CV)\n"
            + PerformanceTable(p.grid, p.records, metric, title, x_property, y_property).to_gnuplot()
            for p in result.passes
        )
        artifacts['gnuplot'] = save_text(
            gnuplot, self.output_dir / constants.GNUPLOT_FILE.format(metric=metric.key)
        )

        if result.passes and self.outputs.get('save_plots', True):
            initial = result.passes[0]
            table = PerformanceTable(initial.grid, initial.records, metric, title, x_property, y_property)
            if table.table.notna().to_numpy().any():
                artifacts['heatmap'] = self.plot_heatmap(
                    table, self.output_dir / constants.HEATMAP_FILE.format(metric=metric.key)
                )
            else:
                self.logger.warning(f"No finite {metric.tag} scores in the initial pass; heatmap skipped.")

        summary = {'run_id': run_id, 'dataset': title, 'metric': metric.name}
        summary.update(result.summary())
        artifacts['summary'] = save_json(summary, self.output_dir / constants.SUMMARY_FILE)

        self.logger.info(f"Reports saved to {self.output_dir}")
        return artifacts

    def _properties(self):
        search_cfg = self.config.get('search', {})
        return (search_cfg.get('x', {}).get('property', 'x'),
                search_cfg.get('y', {}).get('property', 'y'))

    @staticmethod
    def build_pass_frame(passes: List[Any]) -> pd.DataFrame:
        """One row per record and pass, with the pass number and fold count."""
        frames = []
        for p in passes:
            frame = pd.DataFrame([r.as_dict() for r in p.records])
            frame.insert(0, 'folds', p.folds)
            frame.insert(0, 'pass', p.number)
            frames.append(frame)
        if not frames:
            return pd.DataFrame(columns=['pass', 'folds', 'x', 'y'])
        return pd.concat(frames, ignore_index=True)

    def plot_heatmap(self, table: PerformanceTable, output_path: Path) -> Path:
        with self._plot_context():
            fig, ax = plt.subplots(figsize=(10, 8))
            cmap = 'viridis' if table.metric.higher_is_better else 'viridis_r'
            sns.heatmap(table.table, annot=True, fmt=".3g", cmap=cmap, ax=ax,
                        cbar_kws={'label': table.metric.description})
            ax.set_xlabel(f"x ({table.x_property})")
            ax.set_ylabel(f"y ({table.y_property})")
            ax.set_title(f"{table.title}: {table.metric.description} ({table.grid.height} x {table.grid.width})")
            fig.tight_layout()
            fig.savefig(output_path, dpi=self.dpi, bbox_inches='tight')
        return output_path
