"""Per-file analysis pipeline and parallel run driver."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from c_conform.aggregator import FindingAggregator, aggregate
from c_conform.config import RuleConfig
from c_conform.lexer import SourceFile
from c_conform.parser import ParseResult, parse_source
from c_conform.rules import build_rules
from c_conform.rules.base import Finding, Rule

logger = logging.getLogger(__name__)

INTERNAL_ERROR_RULE_ID = "rule-internal-error"


@dataclass(slots=True)
class RunResult:
    """Outcome of analysing a batch of files."""

    findings: list[Finding] = field(default_factory=list)
    files_analyzed: int = 0
    cancelled: bool = False


def analyze_file(
    path: str,
    text: str,
    config: RuleConfig | None = None,
    *,
    rules: Sequence[Rule] | None = None,
) -> list[Finding]:
    """Lex, parse and evaluate every active rule over one file.

    A rule that raises is reported as a single ``rule-internal-error`` finding
    and does not stop the remaining rules.
    """
    active = list(rules) if rules is not None else build_rules(config)
    result = parse_source(SourceFile.from_text(path, text))
    findings: list[Finding] = []
    for rule in active:
        findings.extend(_evaluate_rule(rule, result))
    return aggregate(findings)


def analyze_sources(
    sources: Iterable[tuple[str, str]],
    config: RuleConfig | None = None,
    *,
    jobs: int = 1,
    cancel: threading.Event | None = None,
) -> RunResult:
    """Analyse in-memory ``(path, text)`` pairs, up to ``jobs`` at a time.

    Setting ``cancel`` stops new files from being dispatched. Files already in
    flight finish and their findings are kept.
    """
    rules = build_rules(config)
    aggregator = FindingAggregator()
    workers = max(1, jobs)
    analyzed = 0
    cancelled = False

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="c-conform") as executor:
        pending: set[Future[list[Finding]]] = set()
        for path, text in sources:
            if cancel is not None and cancel.is_set():
                cancelled = True
                break
            if len(pending) >= workers:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    aggregator.submit(future.result())
                    analyzed += 1
            logger.debug("Dispatching %s", path)
            pending.add(executor.submit(analyze_file, path, text, rules=rules))
        for future in pending:
            aggregator.submit(future.result())
            analyzed += 1

    if cancelled:
        logger.info("Run cancelled after %d file(s)", analyzed)
    logger.debug("Collected %d raw finding(s) from %d file(s)", len(aggregator), analyzed)
    return RunResult(findings=aggregator.findings(), files_analyzed=analyzed, cancelled=cancelled)


def _evaluate_rule(rule: Rule, result: ParseResult) -> list[Finding]:
    try:
        return list(rule.evaluate(result))
    except Exception as exc:
        logger.exception("Rule %s failed on %s", rule.rule_id, result.path)
        return [
            Finding(
                rule_id=INTERNAL_ERROR_RULE_ID,
                severity="error",
                path=result.path,
                line=1,
                column=1,
                message=f"rule {rule.rule_id} failed: {exc.__class__.__name__}: {exc}",
            )
        ]
