"""
LLM bullet optimizer.

Rewrites résumé bullets so they mention target keywords, using the OpenAI
chat completions API. Each rewrite is validated (changed, within a word
budget, all keywords present, confident enough) before it is accepted, and
every call is recorded in a ``UsageTracker``. Several bullets are optimized
concurrently, bounded by ``OptimizationConfig.max_concurrent_calls``; results
are applied to the ``Resume`` on the caller's thread.
"""
from __future__ import annotations

import re
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from resume_craft.config import Settings
from resume_craft.logger import get_logger
from resume_craft.schema import Resume, ResumeBullet, SectionType
from resume_craft.tracking import UsageTracker, estimate_tokens
from resume_craft.utils import clean_markdown_fences, count_words

logger = get_logger("optimizer")

OPTIMIZABLE_SECTION_TYPES = (
    SectionType.EXPERIENCE,
    SectionType.PROJECTS,
    SectionType.SKILLS,
    SectionType.CUSTOM,
)
CONTEXT_EXCERPT_CHARS = 1000
MIN_OPTIMIZED_WORDS = 5
# Score of a rewrite that passed every validation check; keeping the original
# length (within the slack) earns the bonus
PASSED_CHECKS_CONFIDENCE = 0.9
LENGTH_KEPT_SLACK = 3
LENGTH_KEPT_BONUS = 0.1


class OptimizationConfig(BaseModel):
    mode: Literal["full", "targeted"] = "targeted"
    max_concurrent_calls: int = Field(default=5, ge=1)
    preserve_length: bool = True
    max_keywords_per_bullet: int = Field(default=2, ge=1)
    min_confidence_score: float = Field(default=0.7, ge=0.0, le=1.0)


class OptimizationContext(BaseModel):
    """Extra material shown to the model alongside each bullet."""
    job_description: str = ""
    portfolio: Optional[str] = None
    projects: Optional[str] = None
    custom_instructions: Optional[str] = None


class PlannedBullet(BaseModel):
    bullet: ResumeBullet
    keywords: List[str]
    section_type: SectionType = SectionType.EXPERIENCE


class BulletOptimization(BaseModel):
    bullet_id: str
    original_text: str
    optimized_text: str
    added_keywords: List[str] = Field(default_factory=list)
    tokens_used: int = 0
    confidence: float = 0.0
    timestamp: datetime = Field(default_factory=datetime.now)


# ============================================================================
# Planning
# ============================================================================

def find_missing_keywords(resume: Resume, keywords: Sequence[str]) -> List[str]:
    """Keywords that appear (case-insensitively) in no bullet of ``resume``."""
    corpus = "\n".join(b.text for b in resume.iter_bullets()).lower()
    missing: List[str] = []
    for keyword in keywords:
        keyword = keyword.strip()
        if keyword and keyword.lower() not in corpus and keyword not in missing:
            missing.append(keyword)
    return missing


def optimizable_bullets(resume: Resume) -> List[Tuple[ResumeBullet, SectionType]]:
    """Editable bullets of unlocked sections whose category may be rewritten."""
    found = []
    for section in resume.sections:
        if section.locked or section.type not in OPTIMIZABLE_SECTION_TYPES:
            continue
        for item in section.items:
            if not item.editable:
                continue
            found.extend((bullet, section.type) for bullet in item.bullets)
    return found


def map_keywords_to_bullets(
    keywords: Sequence[str],
    bullets: Sequence[ResumeBullet],
    max_per_bullet: int = 2,
) -> Dict[str, List[str]]:
    """Spread keywords over bullets: each keyword goes to the next two bullets in turn.

    Returns bullet id -> keywords; a bullet never receives more than
    ``max_per_bullet`` keywords.
    """
    mapping: Dict[str, List[str]] = {}
    if not bullets:
        return mapping

    index = 0
    for keyword in keywords:
        targets = [bullets[index % len(bullets)]]
        if len(bullets) > 1:
            targets.append(bullets[(index + 1) % len(bullets)])
        for bullet in targets:
            assigned = mapping.setdefault(bullet.id, [])
            if len(assigned) < max_per_bullet and keyword not in assigned:
                assigned.append(keyword)
        index += 2
    return {bullet_id: kws for bullet_id, kws in mapping.items() if kws}


def build_optimization_plan(
    resume: Resume,
    keywords: Sequence[str],
    config: Optional[OptimizationConfig] = None,
) -> List[PlannedBullet]:
    """Plan which bullets to rewrite with which keywords, in document order."""
    config = config or OptimizationConfig()
    if config.mode == "targeted":
        keywords = find_missing_keywords(resume, keywords)
    candidates = optimizable_bullets(resume)
    mapping = map_keywords_to_bullets(
        keywords, [b for b, _ in candidates], config.max_keywords_per_bullet
    )
    plan = [
        PlannedBullet(bullet=bullet, keywords=mapping[bullet.id], section_type=section_type)
        for bullet, section_type in candidates
        if bullet.id in mapping
    ]
    logger.info(f"Optimization plan: {len(plan)} bullets for {len(keywords)} keywords ({config.mode})")
    return plan


# ============================================================================
# Reply handling
# ============================================================================

def clean_optimized_text(text: str) -> str:
    """Strip code fences, bold markers and leading bullet glyphs from a reply."""
    cleaned = clean_markdown_fences(text or "")
    cleaned = re.sub(r"^(\*\*|-\s+)", "", cleaned, flags=re.MULTILINE)
    cleaned = re.sub(r"^[•\-*]\s*", "", cleaned.strip())
    cleaned = cleaned.replace("**", "")
    return " ".join(cleaned.split())


def validate_optimization(
    original: str,
    optimized: str,
    keywords: Sequence[str],
    max_words: int,
    min_confidence: float = 0.7,
) -> Tuple[bool, Optional[str], float]:
    """Return ``(is_valid, reason, confidence)`` for a rewritten bullet."""
    if optimized.strip().lower() == original.strip().lower():
        return False, "No changes made", 0.0

    word_count = count_words(optimized)
    if word_count > max_words:
        return False, f"Exceeds word limit ({word_count} > {max_words})", 0.0

    lowered = optimized.lower()
    missing = [k for k in keywords if k.lower() not in lowered]
    if missing:
        return False, f"Missing keywords: {', '.join(missing)}", 0.0

    if word_count < MIN_OPTIMIZED_WORDS:
        return False, "Optimized text too short", 0.0

    confidence = PASSED_CHECKS_CONFIDENCE
    if word_count >= count_words(original) - LENGTH_KEPT_SLACK:
        confidence += LENGTH_KEPT_BONUS
    confidence = round(confidence, 2)

    if confidence < min_confidence:
        return False, f"Confidence {confidence} below {min_confidence}", confidence
    return True, None, confidence


def build_prompt(
    text: str,
    keywords: Sequence[str],
    section_type: SectionType,
    context: OptimizationContext,
    max_words: int,
) -> str:
    original_words = count_words(text)
    extra = []
    if context.portfolio:
        extra.append(f"Portfolio excerpt:\n{context.portfolio[:CONTEXT_EXCERPT_CHARS]}")
    if context.projects:
        extra.append(f"Projects excerpt:\n{context.projects[:CONTEXT_EXCERPT_CHARS]}")
    if context.job_description:
        extra.append(f"Job description excerpt:\n{context.job_description[:CONTEXT_EXCERPT_CHARS]}")
    additional = "ADDITIONAL CONTEXT:\n" + "\n\n".join(extra) + "\n\n" if extra else ""
    custom = f"CUSTOM INSTRUCTIONS:\n{context.custom_instructions}\n\n" if context.custom_instructions else ""

    return f"""Rewrite this resume bullet point to naturally integrate the specified keywords while keeping its professional tone and impact.

ORIGINAL BULLET:
{text}

KEYWORDS TO INTEGRATE:
{', '.join(keywords)}

SECTION: {section_type.value}

{additional}{custom}REQUIREMENTS:
1. Integrate ALL {len(keywords)} keywords naturally
2. Keep the core achievement and impact
3. Keep it under {max_words} words (original: {original_words} words)
4. Use strong action verbs
5. Keep ATS-friendly formatting (no special characters)
6. Prefer quantifiable results where the original has them

Return ONLY the optimized bullet text. No explanations, no markdown.

OPTIMIZED BULLET:"""


# ============================================================================
# Optimizer
# ============================================================================

class BulletOptimizer:
    """Rewrites bullets with an LLM and records every call in a ``UsageTracker``."""

    def __init__(
        self,
        tracker: UsageTracker,
        session_id: str,
        config: Optional[OptimizationConfig] = None,
        client=None,
        model: Optional[str] = None,
    ):
        self.tracker = tracker
        self.session_id = session_id
        self.config = config or OptimizationConfig()
        self._client = client
        self.model = model or Settings.from_env().llm_model

    def _get_client(self):
        """Lazy load the OpenAI client."""
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI()
        return self._client

    def max_words_for(self, text: str) -> int:
        return count_words(text) + (5 if self.config.preserve_length else 10)

    def optimize_bullet(
        self,
        bullet: ResumeBullet,
        keywords: Sequence[str],
        context: Optional[OptimizationContext] = None,
        section_type: SectionType = SectionType.EXPERIENCE,
    ) -> Optional[BulletOptimization]:
        """Rewrite one bullet; returns None when the call fails or the rewrite is rejected."""
        if not keywords:
            return None
        context = context or OptimizationContext()
        operation = f"optimize_bullet_{bullet.id[:8]}"
        original = bullet.text
        max_words = self.max_words_for(original)
        prompt = build_prompt(original, keywords, section_type, context, max_words)
        started = time.monotonic()

        try:
            response = self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": "You are an expert resume writer specializing in ATS optimization."},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
                max_tokens=200,
            )
            raw = response.choices[0].message.content or ""
        except Exception as e:
            logger.error(f"LLM call failed for bullet {bullet.id}: {e}")
            self.tracker.record_llm_call(
                self.session_id, operation, self.model, 0, 0,
                (time.monotonic() - started) * 1000, success=False, error=str(e),
            )
            return None

        duration_ms = (time.monotonic() - started) * 1000
        usage = getattr(response, "usage", None)
        prompt_tokens = getattr(usage, "prompt_tokens", None) or estimate_tokens(prompt)
        completion_tokens = getattr(usage, "completion_tokens", None) or estimate_tokens(raw)

        optimized = clean_optimized_text(raw)
        valid, reason, confidence = validate_optimization(
            original, optimized, keywords, max_words, self.config.min_confidence_score
        )
        self.tracker.record_llm_call(
            self.session_id, operation, self.model, prompt_tokens, completion_tokens,
            duration_ms, success=valid, error=reason,
        )
        if not valid:
            logger.warning(f"Rejected rewrite of bullet {bullet.id}: {reason}")
            return None

        logger.info(f"Optimized bullet {bullet.id} with keywords: {', '.join(keywords)}")
        return BulletOptimization(
            bullet_id=bullet.id,
            original_text=original,
            optimized_text=optimized,
            added_keywords=list(keywords),
            tokens_used=prompt_tokens + completion_tokens,
            confidence=confidence,
        )

    def optimize_bullets_parallel(
        self,
        plan: Sequence[PlannedBullet],
        context: Optional[OptimizationContext] = None,
    ) -> List[BulletOptimization]:
        """Optimize planned bullets concurrently; successful results in plan order."""
        if not plan:
            return []
        logger.info(
            f"Optimizing {len(plan)} bullets (max concurrency: {self.config.max_concurrent_calls})"
        )
        started = time.monotonic()
        with ThreadPoolExecutor(max_workers=self.config.max_concurrent_calls) as executor:
            futures = [
                executor.submit(self.optimize_bullet, entry.bullet, entry.keywords, context, entry.section_type)
                for entry in plan
            ]
            results = [f.result() for f in futures]

        successful = [r for r in results if r is not None]
        logger.info(
            f"Optimization finished in {(time.monotonic() - started) * 1000:.0f}ms: "
            f"{len(successful)}/{len(plan)} successful"
        )
        return successful


# ============================================================================
# Applying results
# ============================================================================

def apply_optimizations(resume: Resume, results: Sequence[BulletOptimization]) -> int:
    """Write accepted rewrites into ``resume``; bullets in locked sections are skipped.

    Returns the number of bullets changed.
    """
    by_id = {r.bullet_id: r for r in results}
    applied = 0
    for section in resume.sections:
        if section.locked:
            continue
        for bullet in section.iter_bullets():
            result = by_id.get(bullet.id)
            if result is None:
                continue
            if bullet.original_text is None:
                bullet.original_text = bullet.text
            bullet.text = result.optimized_text
            bullet.optimized = True
            bullet.keywords = list(dict.fromkeys(bullet.keywords + result.added_keywords))
            applied += 1
    if applied:
        resume.updated_at = datetime.now()
    return applied


def revert_bullet(bullet: ResumeBullet) -> bool:
    """Restore a bullet's pre-optimization text. Returns False if it was never optimized."""
    if bullet.original_text is None:
        return False
    bullet.text = bullet.original_text
    bullet.original_text = None
    bullet.optimized = False
    bullet.keywords = []
    return True
