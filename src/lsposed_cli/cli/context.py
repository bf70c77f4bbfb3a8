import json
import sys
from dataclasses import dataclass, field
from typing import Optional, TextIO

from lsposed_cli.core.control_client import ControlClient
from lsposed_cli.core.errors import ExitCode, LspCliError
from lsposed_cli.core.models import BatchReport
from lsposed_cli.core.scope import ScopeInvariantEngine
from lsposed_cli.core.session import Session
from lsposed_cli.core.settings import Settings, settings as default_settings


@dataclass
class CommandContext:
    session: Session
    json_output: bool = False
    settings: Settings = field(default_factory=lambda: default_settings)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)
    _engine: Optional[ScopeInvariantEngine] = field(default=None, repr=False)

    def client(self) -> ControlClient:
        return self.session.connect()

    def engine(self) -> ScopeInvariantEngine:
        # one registry snapshot per command
        if self._engine is None:
            self._engine = ScopeInvariantEngine(self.client())
        return self._engine

    def print_json(self, payload: dict | list) -> None:
        print(json.dumps(payload, ensure_ascii=False, indent=2), file=self.stdout)

    def print_line(self, text: str) -> None:
        print(text, file=self.stdout)

    def print_err(self, text: str) -> None:
        print(text, file=self.stderr)

    def print_error(self, error: LspCliError) -> None:
        if self.json_output:
            self.print_json({"ok": False, "error": error.to_dict()})
            return
        line = f"Error: {error.message}"
        if error.hint:
            line += f" ({error.hint})"
        self.print_err(line)

    def report_batch(
        self,
        report: BatchReport,
        reboot_required: bool = False,
        extra: Optional[dict] = None,
    ) -> int:
        """Render a batch outcome; exit status is the first failure's."""
        if self.json_output:
            payload = report.to_dict()
            payload["rebootRequired"] = reboot_required
            payload.update(extra or {})
            self.print_json(payload)
        else:
            for item in report.items:
                if not item.ok:
                    self.print_err(f"Error: {item.entity}: {item.reason}")
            if reboot_required:
                self.print_err("Reboot is required")
            if len(report.items) > 1:
                self.print_err(report.summary())
        return int(report.first_failure_code() or ExitCode.NOERROR)
