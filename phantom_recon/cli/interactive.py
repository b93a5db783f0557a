"""Interactive CLI for reconciliation mappings and runs."""
import time
from pathlib import Path
from datetime import datetime
from typing import Optional, Dict, List

import click
from colorama import Fore, Style

from config import AppConfig, app_config
from phantom_recon.api.exceptions import PhantomApiError, MappingValidationError
from phantom_recon.api.phantom_client import PhantomClient
from phantom_recon.cli.field_picker import FieldPicker
from phantom_recon.cli.notices import NoticeBoard, RUN_STARTED
from phantom_recon.exporter.excel_exporter import ExcelExporter
from phantom_recon.exporter.json_exporter import JsonExporter
from phantom_recon.mapper.mapping_store import MappingStore
from phantom_recon.preview.preview_cache import PreviewCache
from phantom_recon.report.summary import ResultSummary, DETAILS_NOT_READY, format_count
from phantom_recon.runner.orchestrator import RunOrchestrator
from phantom_recon.runner.scheduler import PollScheduler
from phantom_recon.schema.models import (
    PreviewCategory,
    ReconciliationMapping,
    ReconciliationResult,
)

BAR_WIDTH = 30
RUN_FAILED_PREFIX = "Failed to start reconciliation run: "


class ReconciliationCLI:
    """Terminal front end over the store, orchestrator and preview cache."""

    def __init__(self, config: Optional[AppConfig] = None, client: Optional[PhantomClient] = None):
        """Initialize CLI."""
        self.config = config or app_config
        self.client = client or PhantomClient(self.config.phantom_api)
        self.store = MappingStore(self.client)
        self.orchestrator = RunOrchestrator(self.client, max_workers=self.config.max_workers)
        self.previews = PreviewCache(self.client)
        self.notices = NoticeBoard(success_ttl=self.config.notice_ttl)

    def print_header(self, title: str):
        """Print a section header."""
        print(f"\n{Fore.CYAN}{'━' * 45}")
        print(f"{Fore.CYAN}{title}")
        print(f"{Fore.CYAN}{'━' * 45}{Style.RESET_ALL}\n")

    # ------------------------------------------------------------------
    # Fields and mappings
    # ------------------------------------------------------------------

    def show_fields(self, task_id: str):
        """List a task's selected output fields."""
        self.print_header(f"Fields of task {task_id}")

        try:
            fields = self.client.get_task_fields(task_id)
        except PhantomApiError as e:
            click.echo(f"{Fore.RED}Error: {e}")
            return

        if not fields:
            click.echo(f"{Fore.YELLOW}No selected fields for this task")
            return

        for i, name in enumerate(fields, 1):
            click.echo(f"{i:3d}. {name}")

    def list_mappings(self, playground_id: str) -> List[ReconciliationMapping]:
        """List mappings of a playground."""
        self.print_header(f"Mappings of playground {playground_id}")

        try:
            mappings = self.store.list_by_playground(playground_id)
        except PhantomApiError as e:
            click.echo(f"{Fore.RED}Error: {e}")
            return []

        if not mappings:
            click.echo(f"{Fore.YELLOW}No reconciliation mappings found")
            return []

        for mapping in mappings:
            click.echo(
                f"{Fore.GREEN}• {mapping.id}{Style.RESET_ALL}  "
                f"{mapping.left_task_id} ↔ {mapping.right_task_id}  "
                f"({len(mapping.field_map)} pairs)"
            )
            for left, right in mapping.field_map.items():
                click.echo(f"     {left:30s} → {right}")

        return mappings

    def pair(
        self,
        playground_id: str,
        left_task_id: str,
        right_task_id: str,
        mapping_id: Optional[str] = None,
        suggest: bool = False,
    ) -> Optional[ReconciliationMapping]:
        """Build (or edit) a mapping interactively and save it."""
        self.print_header("Pair Fields")

        existing = None
        try:
            if mapping_id:
                self.store.list_by_playground(playground_id)
                existing = self.store.get(mapping_id)
                if existing is None:
                    click.echo(f"{Fore.RED}Mapping {mapping_id} not found in {playground_id}")
                    return None
                left_task_id = existing.left_task_id or left_task_id
                right_task_id = existing.right_task_id or right_task_id

            pairing = self.store.open_pairing(left_task_id, right_task_id, mapping=existing)
        except PhantomApiError as e:
            click.echo(f"{Fore.RED}Error: {e}")
            return None

        click.echo(f"Left task:  {left_task_id} ({len(pairing.left_fields)} fields)")
        click.echo(f"Right task: {right_task_id} ({len(pairing.right_fields)} fields)")

        picker = FieldPicker(pairing)
        if suggest:
            picker.apply_suggestions()

        if picker.prompt_pairs() is None:
            return None

        try:
            saved = self.store.save_pairing(
                pairing, playground_id, left_task_id, right_task_id, mapping_id=mapping_id
            )
        except (PhantomApiError, MappingValidationError) as e:
            click.echo(f"{Fore.RED}❌ {e}")
            return None

        verb = "updated" if mapping_id else "saved"
        click.echo(f"{Fore.GREEN}✅ Mapping {verb}: {saved.id or 'pending id'}")
        return saved

    def delete(self, mapping_id: str) -> bool:
        """Delete a mapping after confirmation."""
        if not click.confirm(f"Delete mapping {mapping_id}?", default=False):
            click.echo(f"{Fore.YELLOW}Cancelled")
            return False

        try:
            self.store.delete(mapping_id)
        except PhantomApiError as e:
            click.echo(f"{Fore.RED}Error: {e}")
            return False

        click.echo(f"{Fore.GREEN}✅ Mapping {mapping_id} deleted")
        return True

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def trigger(self, mapping_id: str) -> bool:
        """Start a reconciliation run."""
        try:
            self.orchestrator.trigger(mapping_id)
        except PhantomApiError as e:
            message = str(e)
            if not message.startswith(RUN_FAILED_PREFIX):
                message = RUN_FAILED_PREFIX + message
            self.notices.error(message)
            started = False
        else:
            self.notices.success(RUN_STARTED)
            started = True

        self._echo_notice()
        return started

    def status(self, playground_id: str) -> Dict[str, ReconciliationResult]:
        """Poll every mapping of a playground once."""
        self.print_header(f"Reconciliation status: {playground_id}")

        if not self._track_playground(playground_id):
            return {}

        results = self.orchestrator.poll_all()
        self._display_statuses(results)
        return results

    def watch(self, playground_id: str, interval: Optional[float] = None):
        """Poll on an interval until interrupted."""
        self.print_header(f"Watching playground {playground_id}")

        if not self._track_playground(playground_id):
            return

        scheduler = PollScheduler(
            self.orchestrator,
            interval=interval or self.config.poll_interval,
            on_cycle=self._display_statuses,
        )
        click.echo(f"{Fore.CYAN}Refreshing every {scheduler.interval:g}s, Ctrl+C to stop")

        handle = scheduler.start()
        try:
            while handle is not None and handle.active:
                time.sleep(0.2)
        except KeyboardInterrupt:
            click.echo(f"\n{Fore.YELLOW}Stopped")
        finally:
            scheduler.stop()

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def results(
        self,
        playground_id: str,
        mapping_id: str,
        category: Optional[str] = None,
        limit: int = 20,
    ) -> Optional[ReconciliationResult]:
        """Show a mapping's result summary and one sample preview."""
        result, mapping = self._load_result(playground_id, mapping_id)
        if result is None:
            return None

        summary = ResultSummary(result)
        self.print_header(f"Reconciliation {mapping_id}: {summary.status_label}")
        self._display_summary(summary)

        if not summary.has_details:
            click.echo(f"\n{Fore.YELLOW}{DETAILS_NOT_READY}")
            return result

        if not summary.previews_enabled:
            click.echo(f"\n{Fore.YELLOW}Sample previews are not available for probabilistic matching")
            return result

        self.previews.open(result, mapping.field_map if mapping else None)
        try:
            if category:
                state = self.previews.activate(PreviewCategory(category))
            else:
                state = self.previews.load_active()
            self._display_preview(self.previews.active_category, state, limit)
        finally:
            self.previews.close()

        return result

    def export(self, playground_id: str, mapping_id: str, fmt: str = "json") -> Optional[Path]:
        """Export a result and all of its samples."""
        result, mapping = self._load_result(playground_id, mapping_id)
        if result is None or mapping is None:
            return None

        previews = {}
        if ResultSummary(result).previews_enabled:
            self.previews.open(result, mapping.field_map)
            try:
                previews = self.previews.prefetch_all()
            finally:
                self.previews.close()

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_file = Path(self.config.output_dir) / f"reconciliation_{mapping_id}_{stamp}.{fmt}"

        if fmt == "xlsx":
            ExcelExporter().export(output_file, result, previews)
        else:
            JsonExporter().export(output_file, mapping, result, previews)

        click.echo(f"{Fore.GREEN}✅ Exported to {output_file}")
        return output_file

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _track_playground(self, playground_id: str) -> bool:
        try:
            mappings = self.store.list_by_playground(playground_id)
        except PhantomApiError as e:
            click.echo(f"{Fore.RED}Error: {e}")
            return False

        self.orchestrator.track(m.id for m in mappings if m.id)
        if not self.orchestrator.has_mappings():
            click.echo(f"{Fore.YELLOW}No reconciliation mappings found")
            return False
        return True

    def _load_result(self, playground_id: str, mapping_id: str):
        try:
            self.store.list_by_playground(playground_id)
        except PhantomApiError as e:
            click.echo(f"{Fore.RED}Error: {e}")
            return None, None

        mapping = self.store.get(mapping_id)
        if mapping is None:
            click.echo(f"{Fore.RED}Mapping {mapping_id} not found in {playground_id}")
            return None, None

        return self.orchestrator.poll_once(mapping_id), mapping

    def _echo_notice(self):
        notice = self.notices.current()
        if notice is None:
            return
        colour = Fore.RED if notice.is_error else Fore.GREEN
        click.echo(f"{colour}{notice.message}")

    def _display_statuses(self, results: Dict[str, ReconciliationResult]):
        for mapping_id in sorted(results):
            summary = ResultSummary(results[mapping_id])
            colour = {
                "Completed": Fore.GREEN,
                "Running": Fore.CYAN,
                "Failed": Fore.RED,
            }.get(summary.status_label, Fore.YELLOW)
            line = f"{colour}{summary.status_label:10s}{Style.RESET_ALL} {mapping_id}"
            if results[mapping_id].message:
                line += f"  {results[mapping_id].message}"
            click.echo(line)

    def _display_summary(self, summary: ResultSummary):
        data = summary.to_dict()
        click.echo(f"Method:      {data['method']}")
        click.echo(f"Executed at: {data['executed_at']}")
        if data["message"]:
            click.echo(f"Message:     {data['message']}")

        if not summary.has_details:
            return

        r = summary.result
        click.echo(f"\n{Fore.CYAN}Source files")
        bars = summary.source_bars()
        self._echo_bar("Left", r.left_file_row_count, bars["left"])
        self._echo_bar("Right", r.right_file_row_count, bars["right"])

        click.echo(f"\n{Fore.CYAN}Outcome")
        bars = summary.category_bars()
        self._echo_bar("Common", r.common_row_count, bars["common"])
        self._echo_bar("Left only", r.left_file_exclusive_row_count, bars["leftExclusive"])
        self._echo_bar("Right only", r.right_file_exclusive_row_count, bars["rightExclusive"])

    @staticmethod
    def _echo_bar(label: str, value: Optional[int], ratio: float):
        filled = int(round(ratio * BAR_WIDTH))
        bar = "█" * filled + "░" * (BAR_WIDTH - filled)
        click.echo(f"  {label:11s} {bar} {format_count(value)}")

    def _display_preview(self, category: Optional[PreviewCategory], state, limit: int):
        if category is None:
            return

        click.echo(f"\n{Fore.CYAN}{category.label}")

        if state.error:
            click.echo(f"{Fore.RED}{state.error}")
            return
        if state.data is None:
            click.echo(f"{Fore.YELLOW}No sample available")
            return

        table = state.data.parsed_table
        if table is None:
            for line in state.data.raw_text.split("\n")[:limit]:
                click.echo(line)
            return

        if table.is_empty:
            click.echo(f"{Fore.YELLOW}No rows")
            return

        widths = [len(h) for h in table.headers]
        shown = table.rows[:limit]
        for row in shown:
            for i, value in enumerate(row):
                widths[i] = max(widths[i], len(value))

        click.echo(" | ".join(h.ljust(widths[i]) for i, h in enumerate(table.headers)))
        click.echo("-+-".join("-" * w for w in widths))
        for row in shown:
            click.echo(" | ".join(v.ljust(widths[i]) for i, v in enumerate(row)))

        if len(table.rows) > limit:
            click.echo(f"{Fore.YELLOW}... and {len(table.rows) - limit} more rows")
