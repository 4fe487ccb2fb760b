"""
Rendering and delivery of validation results.

The reporter turns a ``ValidationResult`` into the markdown comment posted
on the pull request, picks the status label and writes the
``validation-result.json`` artifact. Delivery failures are logged and never
change the validation outcome.
"""

import json
from pathlib import Path
from typing import TYPE_CHECKING

from suffixbot.config import Config
from suffixbot.exceptions import RegistryUnavailableError, SuffixBotError
from suffixbot.logging import get_logger
from suffixbot.types.validation import ErrorCategory, ReportOutcome, ValidationResult

if TYPE_CHECKING:
    from suffixbot.clients.github import AsyncGitHubClient
    from suffixbot.sld_registry import SLDRegistry

logger = get_logger("report")

# Title/filename mismatches get the title-format help too
_TITLE_HELP_CATEGORIES = frozenset({ErrorCategory.TITLE_FORMAT, ErrorCategory.CONSISTENCY})


def _mention(author: str | None) -> str:
    return f"@{author} " if author else ""


class ResultReporter:
    """Builds and delivers validation reports."""

    def __init__(
        self,
        config: Config,
        github: "AsyncGitHubClient | None" = None,
        sld_registry: "SLDRegistry | None" = None,
    ) -> None:
        self.config = config
        self.github = github
        self.sld_registry = sld_registry

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(
        self,
        result: ValidationResult,
        mention: str | None = None,
        supported_suffixes: list[str] | None = None,
    ) -> str:
        if result.is_valid:
            return self.render_success(result, mention)
        return self.render_failure(result, mention, supported_suffixes)

    def render_success(self, result: ValidationResult, mention: str | None = None) -> str:
        details = result.details
        return (
            "✅ PR Validation Passed\n\n"
            f"{_mention(mention)}**Validation Results:**\n"
            "- ✅ Title format is correct\n"
            "- ✅ PR description follows the template\n"
            f"- ✅ File count meets requirements ({self.config.max_file_count} file)\n"
            "- ✅ File path is correct (whois/*.json)\n"
            "- ✅ JSON format is valid\n"
            "- ✅ Title and filename are consistent\n\n"
            "**Details:**\n"
            f"- **Action type:** {details.action_type}\n"
            f"- **Domain:** {details.domain_name}.{details.sld}\n"
            f"- **File:** {details.file_name}\n\n"
            "⏭️ **Final Step: you just need to complete the registrant's email verification "
            f"according to [ARAE Instructions]({self.config.authorization_url}) "
            "to complete the merger.**"
        )

    def render_failure(
        self,
        result: ValidationResult,
        mention: str | None = None,
        supported_suffixes: list[str] | None = None,
    ) -> str:
        lines = [
            "❌ PR Validation Failed",
            "",
            f"{_mention(mention)}**The following issues were found:**",
        ]
        lines.extend(f"{index}. ❌ {error}" for index, error in enumerate(result.errors, 1))

        sections = self.help_sections(result.categories, supported_suffixes)
        if sections:
            lines.extend(["", "**Solutions:**"])
            for index, (title, content) in enumerate(sections, 1):
                lines.extend(["", f"### {index}. {title}", content])

        lines.extend(["", f"**Need help?** Please refer to the [README]({self.config.readme_url})."])
        return "\n".join(lines)

    def help_sections(
        self,
        categories: set[ErrorCategory],
        supported_suffixes: list[str] | None = None,
    ) -> list[tuple[str, str]]:
        """Remediation sections for the error categories present, in a fixed order."""
        sections = []

        if categories & _TITLE_HELP_CATEGORIES:
            suffixes = ", ".join(supported_suffixes) if supported_suffixes else "see public_sld_list.json"
            sections.append((
                "Fix Title Format",
                "The title must strictly follow this format:\n"
                "```\n"
                "Registration: example.no.kg\n"
                "Update: example.no.kg\n"
                "Remove: example.no.kg\n"
                "```\n\n"
                f"**Supported domain suffixes:** {suffixes}\n\n"
                "**Examples:**\n"
                "- ✅ `Registration: mycompany.no.kg`\n"
                "- ❌ `Add new domain mycompany.no.kg`\n"
                "- ❌ `Registration mycompany.no.kg` (missing colon)",
            ))

        if ErrorCategory.DESCRIPTION in categories:
            sections.append((
                "Complete PR Description",
                "The PR description must be filled out completely according to the template.\n\n"
                "**Solutions:**\n"
                "1. Use the provided PR template\n"
                "2. Select exactly one operation type\n"
                "3. Confirm your domain name and check every confirmation item\n"
                "4. Confirm all agreement terms\n\n"
                f"**Template link:** [PR Request Template]({self.config.template_url})",
            ))

        if ErrorCategory.FILE_COUNT in categories:
            sections.append((
                "Adjust File Count",
                f"Each PR can only contain {self.config.max_file_count} file change.\n\n"
                "**Solutions:**\n"
                "- If you need to handle multiple domains, create separate PRs\n"
                "- Check if other files were accidentally included\n"
                "- Ensure only the target JSON file was modified",
            ))

        if ErrorCategory.FILE_PATH in categories:
            sections.append((
                "Fix File Path",
                "Files must be located in the `whois/` directory and be `.json` files.\n\n"
                "**Correct file path format:**\n"
                "```\n"
                "whois/example.no.kg.json\n"
                "whois/mycompany.so.kg.json\n"
                "```\n\n"
                "**File naming rules:**\n"
                "- Filename must exactly match the domain name\n"
                "- Must have `.json` extension\n"
                "- Must be located in the `whois/` directory",
            ))

        if ErrorCategory.REMOVE_OPERATION in categories:
            sections.append((
                "Fix Remove Operation Issues",
                "For Remove operations:\n"
                "1. The file must exist in the repository\n"
                "2. The file must be marked for deletion\n"
                "3. The file name must match the domain in the PR title\n\n"
                "Please ensure:\n"
                "- You are removing the correct file\n"
                f"- The file exists in the {self.config.base_branch} branch",
            ))

        if ErrorCategory.BRANCH_NAME in categories:
            sections.append((
                "Rename Your Branch",
                "Open the PR from a branch named after the domain and the request number:\n"
                "```\n"
                "example.no.kg-request-1\n"
                "```\n\n"
                f"- Do not open the PR from the `{self.config.base_branch}` branch\n"
                "- The domain part must match the `domain` and `sld` in your JSON file",
            ))

        return sections

    def label_for(self, result: ValidationResult) -> str:
        return self.config.label_passed if result.is_valid else self.config.label_failed

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def write_artifact(self, result: ValidationResult, path: Path | None = None) -> Path | None:
        """Write ``result.to_dict()`` as JSON; returns None when the write fails."""
        target = path or self.config.workspace / self.config.validation_result_file
        try:
            target.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save validation result to %s: %s", target, e)
            return None
        logger.info("Validation result saved to: %s", target)
        return target

    def log_result(self, result: ValidationResult, number: str | int | None) -> None:
        details = result.details
        for warning in result.warnings:
            logger.warning("PR #%s: %s", number, warning)

        if result.is_valid:
            logger.info("PR #%s validation passed", number)
            logger.info("   Action type: %s", details.action_type)
            logger.info("   Domain: %s.%s", details.domain_name, details.sld)
            logger.info("   File: %s", details.file_name)
            return

        logger.error("PR #%s validation failed", number)
        for index, error in enumerate(result.errors, 1):
            logger.error("   Error %d: %s", index, error)

    async def report(
        self,
        result: ValidationResult,
        number: str | int | None = None,
        author: str | None = None,
        post: bool = True,
    ) -> ReportOutcome:
        """
        Render, log and deliver a validation result.

        Args:
            result: Finished validation result (its ``report`` is filled in)
            number: Pull request number; labels and comments need it
            author: Login to mention in the comment
            post: Set False to skip the GitHub label and comment

        Returns:
            ReportOutcome with the rendered text, label and artifact path
        """
        suffixes = None
        if not result.is_valid and result.categories & _TITLE_HELP_CATEGORIES:
            suffixes = await self._supported_suffixes()

        text = self.render(result, author, suffixes)
        result.report = text
        label = self.label_for(result)

        self.log_result(result, number)
        artifact = self.write_artifact(result)

        if post and self.github is not None and number:
            await self._deliver(number, label, text)

        return ReportOutcome(
            text=text,
            label=label,
            artifact_path=str(artifact) if artifact else None,
        )

    async def _supported_suffixes(self) -> list[str] | None:
        if self.sld_registry is None:
            return None
        try:
            return sorted(await self.sld_registry.get_supported_suffixes())
        except RegistryUnavailableError:
            return None

    async def _deliver(self, number: str | int, label: str, text: str) -> None:
        try:
            await self.github.set_labels(number, [label])
        except (SuffixBotError, OSError) as e:
            logger.error("Failed to update PR labels: %s", e)

        try:
            await self.github.create_comment(number, text)
        except (SuffixBotError, OSError) as e:
            logger.error("Failed to post validation comment: %s", e)
