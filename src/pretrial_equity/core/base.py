"""Base pipeline class"""

import os
import uuid
from datetime import datetime

from .utils import safe_print


class BasePipeline:
    """Run id, output folder and console/file logging shared by pipelines"""

    def __init__(self, config):
        self.cfg = config
        self.log_fh = None
        self.artifacts = {
            "active_steps": [],
            "timings": {},
        }

        # Generate run ID if not provided
        if not getattr(self.cfg, "run_id", None):
            self.cfg.run_id = self._generate_run_id()

        self.setup_logger()

    def _generate_run_id(self) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{timestamp}_{str(uuid.uuid4())[:8]}"

    def setup_logger(self):
        """Open the run log file in the output folder."""
        if getattr(self.cfg, "output_folder", None):
            os.makedirs(self.cfg.output_folder, exist_ok=True)

            if getattr(self.cfg, "log_to_file", False):
                log_path = os.path.join(self.cfg.output_folder, f"pipeline_log_{self.cfg.run_id}.txt")
                try:
                    self.log_fh = open(log_path, "w", encoding="utf-8")
                except OSError as exc:
                    safe_print(f"[WARNING] Could not open log file {log_path}: {exc}")
                    self.log_fh = None

    def _log(self, msg: str):
        """Log message to console and file"""
        if getattr(self.cfg, "verbose", True):
            safe_print(msg)
        if self.log_fh:
            safe_print(msg, file=self.log_fh)

    def _activate(self, step_name: str):
        self.artifacts["active_steps"].append(step_name)

    def close(self):
        if self.log_fh:
            self.log_fh.close()
            self.log_fh = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
