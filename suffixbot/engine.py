"""
Validation pipeline driver.

The pipeline is an explicit, ordered list of ``Check`` steps. Each step
declares the detail flags it depends on (``requires``) and, optionally, a
predicate over the run state (``applies``); a step whose preconditions do
not hold is skipped, so one root cause does not cascade into follow-on
errors.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from suffixbot.checks import PipelineState, ValidationChecks
from suffixbot.config import Config
from suffixbot.logging import get_logger
from suffixbot.reserved_words import ReservedWordsSource
from suffixbot.sld_registry import SLDRegistry
from suffixbot.types.pulls import FileStatus, PullRequestContext
from suffixbot.types.validation import ErrorCategory, ValidationResult

if TYPE_CHECKING:
    from suffixbot.clients.github import AsyncGitHubClient

logger = get_logger("engine")

StepFn = Callable[[PipelineState], Awaitable[None]]


@dataclass(frozen=True)
class Check:
    """One pipeline step and its preconditions."""

    name: str
    run: StepFn
    requires: tuple[str, ...] = ()
    applies: Callable[[PipelineState], bool] | None = None

    def is_ready(self, state: PipelineState) -> bool:
        details = state.result.details
        if not all(getattr(details, flag) for flag in self.requires):
            return False
        return self.applies is None or self.applies(state)


def _is_remove(state: PipelineState) -> bool:
    return state.title.action_type == "Remove"


def _is_added(state: PipelineState) -> bool:
    return state.file.status == FileStatus.ADDED


def _has_record(state: PipelineState) -> bool:
    return state.record is not None


def build_pipeline(checks: ValidationChecks) -> list[Check]:
    """The standard step order for whois pull requests."""
    located = ("title_valid", "file_count_valid", "file_path_valid")
    return [
        Check("title", checks.check_title),
        Check("description", checks.check_description),
        Check("file_count", checks.check_file_count),
        Check("file_path", checks.check_file_path, requires=("file_count_valid",)),
        Check(
            "registration_open",
            checks.check_registration_open,
            requires=located,
            applies=_is_added,
        ),
        Check(
            "remove_operation",
            checks.check_remove_operation,
            requires=located,
            applies=_is_remove,
        ),
        Check(
            "whois_content",
            checks.check_whois_content,
            requires=located,
            applies=lambda state: not _is_remove(state),
        ),
        Check("consistency", checks.check_title_file_consistency, requires=located),
        Check(
            "branch_name",
            checks.check_branch_name,
            requires=("json_valid",),
            applies=_has_record,
        ),
    ]


class ValidationEngine:
    """
    Runs the check pipeline over a pull request.

    Example:
        ```python
        engine = ValidationEngine(config, reserved_words, sld_registry, github)
        result = await engine.validate(context)
        if not result.is_valid:
            print(result.errors)
        ```
    """

    def __init__(
        self,
        config: Config,
        reserved_words: ReservedWordsSource,
        sld_registry: SLDRegistry,
        source_control: "AsyncGitHubClient | None" = None,
        pipeline: Sequence[Check] | None = None,
    ) -> None:
        self.config = config
        self.checks = ValidationChecks(config, reserved_words, sld_registry, source_control)
        self.pipeline = list(pipeline) if pipeline is not None else build_pipeline(self.checks)

    async def validate(self, context: PullRequestContext) -> ValidationResult:
        """
        Validate a pull request.

        Rule violations and failed lookups become errors on the result.
        An unexpected exception in a step is recorded as a single internal
        error; the method itself never raises.
        """
        result = ValidationResult()
        state = PipelineState(context=context, result=result)
        logger.info("Validating PR #%s: %s", context.number, context.title)
        self.checks.reset_source_warnings()

        try:
            for check in self.pipeline:
                if not check.is_ready(state):
                    logger.debug("Skipping check %s", check.name)
                    continue
                before = len(result.issues)
                await check.run(state)
                for warning in self.checks.source_warnings():
                    result.add_warning(warning)
                logger.debug(
                    "Check %s finished with %d new error(s)",
                    check.name,
                    len(result.issues) - before,
                )
        except Exception as e:
            logger.exception("Validation aborted by an unexpected error")
            message = str(e) or "An unknown error occurred during validation"
            result.add_error(ErrorCategory.INTERNAL, f"Internal validation error: {message}")

        if result.is_valid:
            logger.info("PR #%s passed validation", context.number)
        else:
            logger.info(
                "PR #%s failed validation with %d error(s)", context.number, len(result.issues)
            )
        return result
