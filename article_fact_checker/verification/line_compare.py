"""
Line-by-line comparison of an article with its source.

Lines are first matched on lexical overlap. Lines that stay unresolved are
sent, in batches, to an optional completion client for a semantic verdict.
The AI path is best-effort. Whenever it cannot answer for a batch, the
affected lines get a lexical fallback verdict; the comparison itself
never fails.
"""

import asyncio
import functools
import logging
import re
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..core.llm import CompletionClient
from ..core.preprocess import clean_document, strip_price_action
from ..models import (
    LineByLineSection,
    LineCheck,
    LineMethod,
    LineStatus,
    LineSummary,
    format_rate,
)
from .vocabulary import STOP_WORDS

logger = logging.getLogger(__name__)

_LINE_SPLIT_RE = re.compile(r"[^\n]+")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+(?=[\"'(\[$\dA-Z])")
_TOKEN_EDGE = "'\".,;:!?()[]{}<>*…"

SCHEMA_HINT = {
    "results": [
        {
            "index": "integer line number from the prompt",
            "status": "supported | partial | unsupported",
            "explanation": "short reason",
            "sourceExcerpt": "verbatim supporting text from the source, or empty",
        }
    ]
}


class LineComparisonConfig(BaseModel):
    """Configuration for the line-by-line comparator"""
    enabled: bool = True
    batch_size: int = Field(default=8, ge=1)
    per_call_timeout_seconds: float = Field(default=20.0, gt=0)
    total_budget_seconds: float = Field(default=60.0, gt=0)
    max_retries: int = Field(default=1, ge=0, le=5)
    retry_backoff_seconds: float = Field(default=0.5, ge=0)
    lexical_match_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    fallback_partial_threshold: float = Field(default=0.35, ge=0.0, le=1.0)
    min_line_words: int = Field(default=4, ge=1)
    max_source_chars: int = Field(default=12000, ge=500)
    model: str = "gpt-4o-mini"


@dataclass(frozen=True)
class TextUnit:
    """A sentence-like span of a cleaned document."""
    text: str
    start: int
    end: int
    tokens: frozenset


def content_tokens(text: str) -> frozenset:
    tokens = set()
    for raw in text.lower().split():
        word = raw.strip(_TOKEN_EDGE)
        if not word or word in STOP_WORDS:
            continue
        if len(word) > 3 or any(ch.isdigit() for ch in word):
            tokens.add(word)
    return frozenset(tokens)


def split_units(text: str, min_words: int = 1) -> List[TextUnit]:
    """Split text on line breaks and sentence boundaries, keeping offsets."""
    units: List[TextUnit] = []
    for line in _LINE_SPLIT_RE.finditer(text):
        offset = line.start()
        pieces = _SENTENCE_RE.split(line.group(0))
        cursor = 0
        for piece in pieces:
            local = line.group(0).find(piece, cursor)
            cursor = local + len(piece)
            stripped = piece.strip()
            if len(stripped.split()) < min_words:
                continue
            start = offset + local + (len(piece) - len(piece.lstrip()))
            units.append(TextUnit(
                text=stripped,
                start=start,
                end=start + len(stripped),
                tokens=content_tokens(stripped),
            ))
    return units


def coverage(line_tokens: frozenset, unit_tokens: frozenset) -> float:
    """Share of the line's content words present in a source unit."""
    if not line_tokens:
        return 0.0
    return len(line_tokens & unit_tokens) / len(line_tokens)


class LexicalLineJudge:
    """Deterministic word-overlap judge; always available."""

    def __init__(self, match_threshold: float = 0.6, partial_threshold: float = 0.35):
        self.match_threshold = match_threshold
        self.partial_threshold = partial_threshold

    def best_unit(self, line: TextUnit, units: List[TextUnit]) -> Tuple[float, Optional[TextUnit]]:
        best_score, best = 0.0, None
        for unit in units:
            score = coverage(line.tokens, unit.tokens)
            if score > best_score:
                best_score, best = score, unit
        return best_score, best

    def resolve(self, index: int, line: TextUnit, units: List[TextUnit]) -> Optional[LineCheck]:
        """Verdict for lines with strong overlap, None for lines needing a closer look."""
        score, unit = self.best_unit(line, units)
        if score < self.match_threshold or unit is None:
            return None
        return LineCheck(
            index=index,
            line=line.text,
            status=LineStatus.SUPPORTED,
            method=LineMethod.LEXICAL,
            overlap_score=round(score, 3),
            source_context=unit.text,
        )

    def fallback(self, index: int, line: TextUnit, units: List[TextUnit], reason: str) -> LineCheck:
        """Cheap verdict used when the AI judge could not look at a line."""
        score, unit = self.best_unit(line, units)
        if score >= self.match_threshold:
            status = LineStatus.SUPPORTED
        elif score >= self.partial_threshold:
            status = LineStatus.PARTIAL
        else:
            status = LineStatus.UNSUPPORTED
        return LineCheck(
            index=index,
            line=line.text,
            status=status,
            method=LineMethod.FALLBACK,
            overlap_score=round(score, 3),
            source_context=unit.text if unit is not None else None,
            explanation=f"Not verified by AI ({reason}); lexical overlap {score:.0%}",
        )


class CompletionLineJudge:
    """Semantic judge backed by an unreliable completion client."""

    def __init__(self, client: CompletionClient, max_source_chars: int = 12000):
        self.client = client
        self.max_source_chars = max_source_chars

    def build_prompt(self, batch: List[Tuple[int, TextUnit]], source_text: str) -> str:
        source = source_text[: self.max_source_chars]
        numbered = "\n".join(f"[{index}] {line.text}" for index, line in batch)
        return (
            "Decide whether each numbered article line is supported by the SOURCE.\n"
            "'supported': every fact in the line is stated or directly implied by the source.\n"
            "'partial': some facts are in the source, others are missing or different.\n"
            "'unsupported': the line's facts are not in the source.\n"
            "Judge numbers and quotations strictly; do not assume facts that are not written.\n"
            "Respond with JSON: {\"results\": [{\"index\": <line number>, \"status\": ..., "
            "\"explanation\": ..., \"sourceExcerpt\": <verbatim source text or empty>}]}\n\n"
            f"SOURCE:\n{source}\n\n"
            f"ARTICLE LINES:\n{numbered}"
        )

    async def judge(self,
                    batch: List[Tuple[int, TextUnit]],
                    source_text: str,
                    timeout: float,
                    executor: Executor) -> Dict[str, Any]:
        """Run one completion call on ``executor``; a call that outlives ``timeout`` is abandoned."""
        prompt = self.build_prompt(batch, source_text)
        loop = asyncio.get_running_loop()
        call = functools.partial(self.client.complete, prompt, schema_hint=SCHEMA_HINT)
        return await asyncio.wait_for(loop.run_in_executor(executor, call), timeout=timeout)


class LineByLineComparator:
    """
    Compares every line of an article with the source.

    Pipeline flow:
    1. Split article and source into sentence-like units
    2. Resolve lines with strong lexical overlap
    3. Send remaining lines to the AI judge in batches, within a time budget
    4. Give every line the AI could not judge a lexical fallback verdict
    """

    def __init__(self,
                 config: Optional[LineComparisonConfig] = None,
                 client: Optional[CompletionClient] = None):
        self.config = config or LineComparisonConfig()
        self.client = client
        self.lexical = LexicalLineJudge(
            match_threshold=self.config.lexical_match_threshold,
            partial_threshold=self.config.fallback_partial_threshold,
        )
        self.ai_judge = CompletionLineJudge(client, self.config.max_source_chars) if client is not None else None

    async def compare(self, article: str, source_text: str) -> LineByLineSection:
        """
        Compare an article with its source.

        Args:
            article: Generated article text
            source_text: Source document text

        Returns:
            LineByLineSection with one check per article line
        """
        started = time.monotonic()
        article_clean = clean_document(strip_price_action(article))
        source_clean = clean_document(source_text)

        lines = split_units(article_clean, self.config.min_line_words)
        units = split_units(source_clean)
        checks: Dict[int, LineCheck] = {}
        unresolved: List[Tuple[int, TextUnit]] = []

        for index, line in enumerate(lines):
            check = self.lexical.resolve(index, line, units)
            if check is not None:
                checks[index] = check
            else:
                unresolved.append((index, line))

        logger.info(f"Line comparison: {len(lines)} lines, {len(unresolved)} need semantic review")

        if unresolved and self.ai_judge is None:
            for index, line in unresolved:
                checks[index] = self.lexical.fallback(index, line, units, "AI comparison unavailable")
        elif unresolved:
            batches = list(_batches(unresolved, self.config.batch_size))
            # Timed-out calls keep their worker thread, so every attempt may need a fresh one
            executor = ThreadPoolExecutor(
                max_workers=len(batches) * (self.config.max_retries + 1),
                thread_name_prefix="line-judge",
            )
            try:
                for batch in batches:
                    remaining = self.config.total_budget_seconds - (time.monotonic() - started)
                    verdicts: Dict[int, LineCheck] = {}
                    if remaining <= 0:
                        logger.warning(f"Time budget exhausted; {len(batch)} lines use the lexical fallback")
                        reason = "AI time budget exhausted"
                    else:
                        try:
                            verdicts = await self._judge_with_retries(batch, source_clean, units, started, executor)
                            reason = "no AI verdict returned"
                        except Exception as e:
                            logger.warning(f"AI line comparison failed for batch of {len(batch)}: {e!r}")
                            reason = "AI comparison failed"
                    for index, line in batch:
                        checks[index] = verdicts.get(index) or self.lexical.fallback(index, line, units, reason)
            finally:
                # never wait for calls that outlived their timeout
                executor.shutdown(wait=False, cancel_futures=True)

        ordered = [checks[index] for index in sorted(checks)]
        return LineByLineSection(
            checks=ordered,
            summary=_summarize(ordered),
            ai_available=self.ai_judge is not None,
        )

    def compare_sync(self, article: str, source_text: str) -> LineByLineSection:
        """Blocking wrapper around :meth:`compare`."""
        return asyncio.run(self.compare(article, source_text))

    async def _judge_with_retries(self,
                                  batch: List[Tuple[int, TextUnit]],
                                  source_clean: str,
                                  units: List[TextUnit],
                                  started: float,
                                  executor: Executor) -> Dict[int, LineCheck]:
        last_error: Optional[Exception] = None
        for attempt in range(self.config.max_retries + 1):
            remaining = self.config.total_budget_seconds - (time.monotonic() - started)
            if remaining <= 0:
                break
            timeout = min(self.config.per_call_timeout_seconds, remaining)
            try:
                payload = await self.ai_judge.judge(batch, source_clean, timeout, executor)
                return self._parse_verdicts(payload, batch, source_clean, units)
            except asyncio.TimeoutError as e:
                last_error = e
                logger.warning(f"AI comparison timed out after {timeout:.1f}s (attempt {attempt + 1})")
            except Exception as e:
                last_error = e
                logger.warning(f"AI comparison error (attempt {attempt + 1}): {e}")

            if attempt < self.config.max_retries:
                wait_time = self.config.retry_backoff_seconds * (2 ** attempt)
                remaining = self.config.total_budget_seconds - (time.monotonic() - started)
                await asyncio.sleep(max(0.0, min(wait_time, remaining)))

        raise last_error or asyncio.TimeoutError("AI time budget exhausted")

    def _parse_verdicts(self,
                        payload: Dict[str, Any],
                        batch: List[Tuple[int, TextUnit]],
                        source_clean: str,
                        units: List[TextUnit]) -> Dict[int, LineCheck]:
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            raise ValueError("Completion response has no 'results' list")

        lines = dict(batch)
        statuses = {status.value for status in LineStatus}
        verdicts: Dict[int, LineCheck] = {}

        for item in results:
            if not isinstance(item, dict):
                continue
            try:
                index = int(item.get("index"))
            except (TypeError, ValueError):
                continue
            status = str(item.get("status", "")).strip().lower()
            if index not in lines or status not in statuses:
                continue

            line = lines[index]
            score, unit = self.lexical.best_unit(line, units)
            excerpt = str(item.get("sourceExcerpt") or "").strip()
            if excerpt and excerpt not in source_clean:
                # only text that is really in the source is reported
                excerpt = ""
            if not excerpt and status != LineStatus.UNSUPPORTED.value and unit is not None:
                excerpt = unit.text

            explanation = str(item.get("explanation") or "").strip()[:500] or None
            verdicts[index] = LineCheck(
                index=index,
                line=line.text,
                status=status,
                method=LineMethod.AI,
                overlap_score=round(score, 3),
                source_context=excerpt or None,
                explanation=explanation,
            )

        if not verdicts:
            raise ValueError("Completion response contained no usable verdicts")
        return verdicts


def _batches(items: List[Tuple[int, TextUnit]], size: int) -> Iterable[List[Tuple[int, TextUnit]]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _summarize(checks: List[LineCheck]) -> LineSummary:
    total = len(checks)
    supported = sum(1 for c in checks if c.status == LineStatus.SUPPORTED)
    return LineSummary(
        total=total,
        supported=supported,
        partial=sum(1 for c in checks if c.status == LineStatus.PARTIAL),
        unsupported=sum(1 for c in checks if c.status == LineStatus.UNSUPPORTED),
        ai_checked=sum(1 for c in checks if c.method == LineMethod.AI),
        fallback_used=sum(1 for c in checks if c.method == LineMethod.FALLBACK),
        support_rate=format_rate(supported, total),
    )
