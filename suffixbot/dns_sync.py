"""
DNS synchronization for merged whois pull requests.

A merged ``Registration``/``Update`` overwrites the NS RRset of
``<domain>.<sld>.`` in the PowerDNS-Admin zone named after the SLD; a
``Remove`` deletes it. Zones are never created here: a missing zone is a
hard failure.
"""

import asyncio
import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from suffixbot.config import FILE_PATH_PATTERN, TITLE_PATTERN
from suffixbot.exceptions import APIError, DNSSyncError, SuffixBotError
from suffixbot.logging import get_logger
from suffixbot.types.dns import (
    OPERATION_ALIASES,
    DNSOperation,
    DNSSyncResult,
    SyncState,
    SyncTarget,
)
from suffixbot.types.pulls import FileChange, FileStatus

logger = get_logger("dns")


def extract_whois_file(files: Iterable[FileChange]) -> FileChange:
    """
    The single whois file of a change set.

    Raises:
        DNSSyncError: If there is no whois file or more than one
    """
    whois_files = [f for f in files if FILE_PATH_PATTERN.match(f.filename)]
    if not whois_files:
        raise DNSSyncError("No whois files found in PR changes")
    if len(whois_files) > 1:
        names = ", ".join(f.filename for f in whois_files)
        raise DNSSyncError(f"Multiple whois files found in PR changes: {names}")
    return whois_files[0]


def record_from_filename(filename: str) -> dict[str, str]:
    """``whois/<domain>.<sld>.json`` -> ``{"domain", "sld"}``; the SLD may contain dots."""
    stem = filename[len("whois/"):-len(".json")]
    domain, _, sld = stem.partition(".")
    if not domain or not sld:
        raise DNSSyncError(f"Invalid domain format in filename: {stem}")
    return {"domain": domain, "sld": sld}


async def read_whois_file(path: Path) -> dict[str, Any]:
    """
    Load a whois JSON file from the checkout.

    Raises:
        DNSSyncError: If the file is missing, unreadable or not a JSON object
    """
    logger.info("Reading whois file: %s", path)
    try:
        content = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except FileNotFoundError as e:
        raise DNSSyncError(f"Whois file not found: {path}") from e
    except OSError as e:
        raise DNSSyncError(f"Failed to read whois file {path}: {e}") from e

    try:
        data = json.loads(content)
    except ValueError as e:
        raise DNSSyncError(f"Invalid JSON format in whois file: {path}") from e

    if not isinstance(data, dict):
        raise DNSSyncError(f"Whois file {path} must contain a JSON object")
    return data


def detect_operation(data: Mapping[str, Any]) -> DNSOperation:
    """A record with nameservers is an add; without, a delete."""
    nameservers = data.get("nameservers")
    if isinstance(nameservers, list) and nameservers:
        return DNSOperation.ADD
    return DNSOperation.DELETE


def resolve_operation(name: str) -> DNSOperation:
    try:
        return OPERATION_ALIASES[name.lower()]
    except KeyError:
        raise DNSSyncError(f"Unsupported operation: {name}") from None


class DNSSyncEngine:
    """
    Applies whois changes to PowerDNS-Admin.

    ``state`` follows PARSE_TITLE -> VALIDATE_RECORD -> CHECK_ZONE -> APPLY
    and ends in DONE or FAILED.
    """

    def __init__(self, dns_client: Any, ttl: int = 7200) -> None:
        """
        Args:
            dns_client: AsyncPowerDNSAdminClient (or a test double with the same methods)
            ttl: TTL of written NS RRsets
        """
        self.dns = dns_client
        self.ttl = ttl
        self.state = SyncState.PARSE_TITLE

    def _enter(self, state: SyncState) -> None:
        logger.debug("DNS sync state %s -> %s", self.state.value, state.value)
        self.state = state

    def parse_title(self, title: str) -> tuple[DNSOperation, str, str]:
        """Operation, domain and SLD of a merged PR title."""
        match = TITLE_PATTERN.match(title or "")
        if not match:
            raise DNSSyncError(
                f'Invalid PR title format: {title}. Expected format: "Operation: domain.sld"'
            )
        action, domain, sld = match.groups()
        return resolve_operation(action), domain, sld

    def validate_record(self, operation: DNSOperation, data: Mapping[str, Any]) -> SyncTarget:
        """Delete needs domain and sld; add/update also a non-empty nameserver list."""
        if operation.is_delete:
            missing = [name for name in ("domain", "sld") if not data.get(name)]
            if missing:
                raise DNSSyncError(
                    "Missing required fields in whois data for delete operation: "
                    + ", ".join(missing)
                )
            return SyncTarget(domain=data["domain"], sld=data["sld"])

        missing = [name for name in ("domain", "sld", "nameservers") if not data.get(name)]
        if missing:
            raise DNSSyncError(f"Missing required fields in whois data: {', '.join(missing)}")

        nameservers = data["nameservers"]
        if not isinstance(nameservers, list) or not nameservers:
            raise DNSSyncError("Nameservers must be a non-empty array")

        return SyncTarget(domain=data["domain"], sld=data["sld"], nameservers=tuple(nameservers))

    async def check_zone_exists(self, sld: str) -> None:
        try:
            exists = await self.dns.check_zone_exists(sld)
        except APIError as e:
            raise DNSSyncError(f"Unable to look up zone {sld}: {e.message}") from e
        if not exists:
            raise DNSSyncError(f"Zone {sld} does not exist in PowerDNS Admin")

    async def apply(self, operation: DNSOperation, target: SyncTarget) -> DNSSyncResult:
        """
        Check the zone, then overwrite or delete the NS RRset.

        Raises:
            DNSSyncError: If the zone is missing or the DNS API call fails
        """
        self._enter(SyncState.CHECK_ZONE)
        logger.info("Executing %s operation for %s", operation.value, target.fqdn)
        await self.check_zone_exists(target.sld)

        self._enter(SyncState.APPLY)
        try:
            if operation.is_delete:
                await self.dns.delete_ns_records(target.sld, target.domain)
                message = f"Successfully removed NS records for {target.fqdn}"
            else:
                if not target.nameservers:
                    raise DNSSyncError(f"No nameservers to apply for {target.fqdn}")
                await self.dns.replace_ns_records(
                    target.sld, target.domain, list(target.nameservers), ttl=self.ttl
                )
                verb = "registered" if operation is DNSOperation.ADD else "updated"
                message = f"Successfully {verb} NS records for {target.fqdn}"
        except APIError as e:
            raise DNSSyncError(f"DNS API request failed for {target.fqdn}: {e.message}") from e

        self._enter(SyncState.DONE)
        logger.info("DNS operation completed successfully: %s", message)
        return DNSSyncResult(
            success=True,
            operation=operation.value,
            domain=target.fqdn,
            message=message,
            nameservers=list(target.nameservers) if target.nameservers else None,
        )

    async def handle_pr_merge(
        self, title: str, files: Iterable[FileChange], workspace: Path
    ) -> DNSSyncResult:
        """
        Sync the whois file of a merged PR.

        A removed file is deleted using the domain from its filename; other
        files are read from the checkout at ``workspace``.

        Raises:
            DNSSyncError: On any failure
        """
        self.state = SyncState.PARSE_TITLE
        try:
            logger.info("Processing PR: %s", title)
            operation, _, _ = self.parse_title(title)
            whois_file = extract_whois_file(files)
            logger.info("Found whois file: %s (status: %s)", whois_file.filename, whois_file.status)

            if whois_file.status == FileStatus.REMOVED:
                operation = DNSOperation.DELETE
                data: Mapping[str, Any] = record_from_filename(whois_file.filename)
            else:
                data = await read_whois_file(Path(workspace) / whois_file.filename)

            self._enter(SyncState.VALIDATE_RECORD)
            target = self.validate_record(operation, data)
            return await self.apply(operation, target)
        except DNSSyncError:
            self._enter(SyncState.FAILED)
            raise

    async def handle_manual_sync(
        self,
        domain: str,
        operation: str = "auto",
        whois_file: str | Path | None = None,
        force: bool = False,
        triggered_by: str = "unknown",
    ) -> DNSSyncResult:
        """
        Operator-triggered sync of ``domain`` (``<name>.<sld>``).

        Args:
            domain: Full domain, e.g. ``mycompany.no.kg``
            operation: ``auto`` (detect from nameservers) or an operation alias
            whois_file: Path of a whois JSON file supplying the record
            force: Downgrade record problems to warnings and return failures
                as a failed result instead of raising
            triggered_by: Actor recorded on the result

        Raises:
            DNSSyncError: On failure, unless ``force`` is set
        """
        self.state = SyncState.PARSE_TITLE
        options = {"operation": operation, "forceSync": force}
        if whois_file:
            options["whoisFile"] = str(whois_file)
        logger.info(
            "Manual DNS sync for %s: operation=%s force=%s triggered_by=%s",
            domain, operation, force, triggered_by,
        )

        try:
            name, _, sld = (domain or "").partition(".")
            if not name or not sld:
                raise DNSSyncError(f"Invalid domain format: {domain}. Expected format: domain.sld")
            fallback = {"domain": name, "sld": sld}

            data: Mapping[str, Any] = fallback
            if whois_file:
                try:
                    data = await read_whois_file(Path(whois_file))
                except DNSSyncError as e:
                    if not force:
                        raise
                    logger.warning("Using domain from input, whois file unusable: %s", e.message)

            op = detect_operation(data) if operation == "auto" else resolve_operation(operation)
            if operation == "auto":
                logger.info("Auto-detected operation type: %s", op.value)

            self._enter(SyncState.VALIDATE_RECORD)
            try:
                target = self.validate_record(op, data)
            except DNSSyncError as e:
                if not force:
                    raise
                logger.warning(
                    "WHOIS data validation failed, continuing due to force sync: %s", e.message
                )
                target = self._best_effort_target(data, fallback)

            result = await self.apply(op, target)
        except DNSSyncError as e:
            self._enter(SyncState.FAILED)
            logger.error("Manual DNS operation failed: %s", e.message)
            if not force:
                raise
            return DNSSyncResult(
                success=False,
                domain=domain,
                error=e.message,
                trigger_type="manual",
                triggered_by=triggered_by,
                manual_options=options,
            )

        result.trigger_type = "manual"
        result.triggered_by = triggered_by
        result.manual_options = options
        return result

    @staticmethod
    def _best_effort_target(data: Mapping[str, Any], fallback: Mapping[str, str]) -> SyncTarget:
        nameservers = data.get("nameservers")
        if not isinstance(nameservers, list):
            nameservers = []
        return SyncTarget(
            domain=data.get("domain") or fallback["domain"],
            sld=data.get("sld") or fallback["sld"],
            nameservers=tuple(ns for ns in nameservers if isinstance(ns, str)),
        )

    async def get_domain_info(self, domain: str, sld: str) -> dict[str, Any]:
        """NS and other RRsets currently published for ``domain.sld``; never raises."""
        fqdn = f"{domain}.{sld}"
        try:
            records = await self.dns.get_domain_records(sld, domain)
        except SuffixBotError as e:
            logger.warning("Error getting domain info for %s: %s", fqdn, e.message)
            return {"exists": False, "records": [], "domain": fqdn, "error": e.message}
        return {"exists": bool(records), "records": records, "domain": fqdn}


def write_result_file(result: DNSSyncResult, path: Path) -> Path:
    """Write ``result.to_dict()`` as JSON, replacing any previous file."""
    path.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
    logger.info("Result written to: %s", path)
    return path
