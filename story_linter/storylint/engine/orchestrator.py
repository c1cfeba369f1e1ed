"""Orchestrator -- drives the two-phase validation pipeline.

Phase A extracts per-file metadata, phase B merges it into a global state
that is frozen before phase C validates every file against it. Files are
processed in absolute-path order and validators in registration order, so a
run is deterministic regardless of discovery order.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Sequence

from storylint.config.models import LinterConfig
from storylint.engine.aggregator import ResultAggregator
from storylint.engine.contract import Capabilities, Validator, ValidatorContext, ValidatorFactory
from storylint.engine.errors import (
    ConfigError,
    FileProcessingError,
    FrozenStateError,
    InitFailedError,
)
from storylint.engine.events import (
    ErrorEvent,
    EventBus,
    FileExtracted,
    FileParsed,
    FileValidated,
    RunComplete,
    RunPhase,
    RunStart,
    ValidatorPhase,
)
from storylint.engine.models import ENGINE_ID, AggregateResult, Issue, Severity, engine_issue
from storylint.engine.processor import FileProcessor, ParsedFile, relative_to_root
from storylint.engine.state import GlobalState

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    idle = "idle"
    registered = "registered"
    initialized = "initialized"
    extracting = "extracting"
    merging_state = "merging_state"
    validating = "validating"
    aggregating = "aggregating"
    finalized = "finalized"


class CancellationToken:
    """Cooperative cancel flag polled between files and at phase boundaries."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class Orchestrator:
    """Registers validator factories and executes runs."""

    def __init__(
        self,
        config: LinterConfig | None = None,
        event_bus: EventBus | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.config = config or LinterConfig()
        self.project_root = self.config.project.root.resolve()
        self.events = event_bus or EventBus()
        self.state = RunState.idle
        self.state_history: list[RunState] = []
        self._clock = clock
        self._factories: list[ValidatorFactory] = []

    def register(self, factory: ValidatorFactory) -> None:
        self._factories.append(factory)

    def register_all(self, factories: Sequence[ValidatorFactory]) -> None:
        for factory in factories:
            self.register(factory)

    async def run(
        self,
        files: Sequence[Path],
        cancel: CancellationToken | None = None,
    ) -> AggregateResult:
        """Validate ``files``. Raises ConfigError / InitFailedError on fatal failures."""
        self.state_history = []
        run = _Run(self, files, cancel or CancellationToken())
        return await run.execute()

    def _enter(self, state: RunState) -> None:
        self.state = state
        self.state_history.append(state)
        logger.debug("Run state -> %s", state.value)


class _Run:
    """State for a single run; never reused."""

    def __init__(
        self, owner: Orchestrator, files: Sequence[Path], token: CancellationToken
    ) -> None:
        self.owner = owner
        self.config = owner.config
        self.root = owner.project_root
        self.events = owner.events
        self.token = token
        self.clock = owner._clock
        self.files = sorted({Path(f).resolve() for f in files})
        self.processor = FileProcessor(self.root)
        self.aggregator = ResultAggregator()
        self.global_state = GlobalState()

        self.validators: list[Validator] = []
        self.capabilities: dict[str, Capabilities] = {}
        self.contexts: dict[str, ValidatorContext] = {}
        self.initialized: list[Validator] = []
        self.parsed: list[ParsedFile] = []
        self.partials: dict[str, list[tuple[Path, Any]]] = defaultdict(list)
        self.cancelled = False

    async def execute(self) -> AggregateResult:
        try:
            self._instantiate()
            self._initialize()
            self.events.emit(RunStart(file_count=len(self.files)))

            if not self._cancel_requested():
                await self._extract()
            if not self._cancel_requested():
                self._merge()
            if not self._cancel_requested():
                self._validate()

            self.owner._enter(RunState.aggregating)
            result = self.aggregator.build(
                self.config.validation.fail_on, cancelled=self.cancelled
            )
        finally:
            self._finalize()

        logger.info(
            "Run complete: %d files, %d errors, %d warnings, %d info",
            len(self.files),
            len(result.errors),
            len(result.warnings),
            len(result.info),
        )
        self.events.emit(RunComplete(result=result))
        self.owner._enter(RunState.idle)
        return result

    # -- lifecycle --------------------------------------------------------

    def _instantiate(self) -> None:
        seen: set[str] = set()
        for factory in self.owner._factories:
            validator = factory()
            if validator.id in seen:
                raise ConfigError(f"Duplicate validator id '{validator.id}'")
            seen.add(validator.id)
            if not self.config.is_enabled(validator.id):
                logger.info("Validator '%s' disabled by configuration", validator.id)
                continue
            self.validators.append(validator)
            self.capabilities[validator.id] = validator.capabilities
            self.contexts[validator.id] = ValidatorContext(
                validator_id=validator.id,
                config=self.config.options_for(validator.id, validator.config_section),
                project_root=self.root,
                global_state=self.global_state,
                event_bus=self.events,
                processor=self.processor,
                files=self.files,
                report=lambda issue, vid=validator.id: self.aggregator.add(vid, issue),
            )
        self.owner._enter(RunState.registered)

    def _initialize(self) -> None:
        for validator in self.validators:
            try:
                validator.initialize(self.contexts[validator.id])
            except ConfigError:
                raise
            except Exception as e:
                logger.error("Validator '%s' failed to initialize: %s", validator.id, e)
                raise InitFailedError(validator.id, e) from e
            self.initialized.append(validator)
        self.owner._enter(RunState.initialized)

    def _finalize(self) -> None:
        for validator in reversed(self.initialized):
            try:
                validator.finalize(self.contexts[validator.id])
            except Exception:
                logger.exception("Validator '%s' failed to finalize", validator.id)
        self.processor.clear()
        self.parsed = []
        self.partials.clear()
        self.owner._enter(RunState.finalized)

    # -- phases -----------------------------------------------------------

    async def _extract(self) -> None:
        self.owner._enter(RunState.extracting)
        started = self.clock()
        spent: dict[str, float] = defaultdict(float)

        for path in self.files:
            if self._cancel_requested():
                return
            parsed = await self._parse(path)
            if parsed is None:
                continue

            for validator in self.validators:
                if not self.capabilities[validator.id].extract or not validator.supports(parsed):
                    continue
                t0 = self.clock()
                try:
                    partial = validator.extract(parsed, self.contexts[validator.id])
                except FrozenStateError:
                    raise
                except Exception as e:
                    self._internal_error(validator, "extract", e, parsed.relative_path)
                    continue
                finally:
                    spent[validator.id] += self.clock() - t0
                self.partials[validator.id].append((parsed.path, partial))
                self.events.emit(
                    FileExtracted(file=parsed.relative_path, validator_id=validator.id)
                )

        self._emit_phase("extract", started, spent)

    async def _parse(self, path: Path) -> ParsedFile | None:
        try:
            parsed = await self.processor.process(path)
        except FileProcessingError as e:
            relative = relative_to_root(path, self.root)
            logger.warning("Skipping %s: %s", relative, e.message)
            self.aggregator.add(
                ENGINE_ID, engine_issue(e.kind, e.message, file=relative, line=e.line)
            )
            self.events.emit(ErrorEvent(context=relative, kind=e.kind, error=e.message))
            return None

        self.parsed.append(parsed)
        self.aggregator.extend(ENGINE_ID, parsed.issues)
        self.events.emit(FileParsed(file=parsed.relative_path))
        return parsed

    def _merge(self) -> None:
        self.owner._enter(RunState.merging_state)
        started = self.clock()
        spent: dict[str, float] = {}

        for validator in self.validators:
            caps = self.capabilities[validator.id]
            if not (caps.extract or caps.merge):
                continue
            # Feed partials in path order whatever order they arrived in.
            partials = [p for _, p in sorted(self.partials[validator.id], key=lambda x: x[0])]
            t0 = self.clock()
            try:
                entry = validator.merge_global_state(partials, self.contexts[validator.id])
            except FrozenStateError:
                raise
            except Exception as e:
                self._internal_error(validator, "merge_global_state", e, None)
                continue
            finally:
                spent[validator.id] = self.clock() - t0
            self.global_state.set(validator.id, entry)

        self.global_state.freeze()
        self._emit_phase("merge", started, spent)

    def _validate(self) -> None:
        self.owner._enter(RunState.validating)
        started = self.clock()
        spent: dict[str, float] = defaultdict(float)

        for parsed in self.parsed:
            if self._cancel_requested():
                return
            for validator in self.validators:
                caps = self.capabilities[validator.id]
                if not caps.per_file_validate or not validator.supports(parsed):
                    continue
                t0 = self.clock()
                try:
                    issues = list(validator.validate(parsed, self.contexts[validator.id]))
                except FrozenStateError:
                    raise
                except Exception as e:
                    self._internal_error(validator, "validate", e, parsed.relative_path)
                    continue
                finally:
                    spent[validator.id] += self.clock() - t0
                self.aggregator.extend(validator.id, issues)
                self.events.emit(
                    FileValidated(
                        file=parsed.relative_path,
                        validator_id=validator.id,
                        issue_count=len(issues),
                    )
                )

        for validator in self.validators:
            if not self.capabilities[validator.id].project_validate:
                continue
            if self._cancel_requested():
                return
            files = [p for p in self.parsed if validator.supports(p)]
            t0 = self.clock()
            try:
                issues = list(validator.project_validate(files, self.contexts[validator.id]))
            except FrozenStateError:
                raise
            except Exception as e:
                self._internal_error(validator, "project_validate", e, None)
                continue
            finally:
                spent[validator.id] += self.clock() - t0
            self.aggregator.extend(validator.id, issues)

        self._emit_phase("validate", started, spent)

    # -- helpers ----------------------------------------------------------

    def _cancel_requested(self) -> bool:
        if self.cancelled:
            return True
        if not self.token.cancelled:
            return False
        self.cancelled = True
        logger.warning("Run cancelled during %s", self.owner.state.value)
        self.aggregator.add(
            ENGINE_ID, engine_issue("cancelled", "Run cancelled", severity=Severity.info)
        )
        return True

    def _internal_error(
        self, validator: Validator, hook: str, exc: Exception, file: str | None
    ) -> None:
        logger.exception("Validator '%s' raised in %s (%s)", validator.id, hook, file or "project")
        message = f"Validator '{validator.id}' failed in {hook}: {type(exc).__name__}: {exc}"
        issue = Issue(
            code="internal-error",
            severity=Severity.error,
            message=message,
            validator=validator.id,
            file=file,
        )
        self.aggregator.add(validator.id, issue)
        self.events.emit(
            ErrorEvent(context=file or validator.id, kind="internal-error", error=message)
        )

    def _emit_phase(self, phase: str, started: float, spent: dict[str, float]) -> None:
        for validator_id, elapsed in spent.items():
            self.events.emit(
                ValidatorPhase(validator_id=validator_id, phase=phase, elapsed=elapsed)
            )
        self.events.emit(RunPhase(phase=phase, elapsed=self.clock() - started))
