"""
Job description keyword extraction and keyword gap analysis.

``KeywordAnalyzer`` asks the LLM for the technical keywords of a job
description (or of a résumé) and records each call in a ``UsageTracker``.
``analyze_keyword_gap`` compares two keyword lists; ``keywords_in_resume``
does the comparison against bullet text without an LLM call.
"""
from __future__ import annotations

import re
import time
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from resume_craft.config import Settings
from resume_craft.logger import get_logger
from resume_craft.schema import Resume
from resume_craft.tracking import UsageTracker, estimate_tokens
from resume_craft.utils import clean_markdown_fences

logger = get_logger("keywords")

MAX_KEYWORD_LENGTH = 50

JOB_KEYWORDS_PROMPT = """You are a technical recruiter and keyword extraction expert.
Extract the 15-20 most important technical keywords from this job description.

Focus on:
- Programming languages (Python, JavaScript, Java, C++, etc.)
- Frameworks and libraries (React, Django, TensorFlow, etc.)
- Tools and platforms (Docker, Kubernetes, AWS, etc.)
- Technical skills (Machine Learning, Computer Vision, API Development, etc.)
- Methodologies (Agile, CI/CD, TDD, etc.)

Return ONLY a comma-separated list of keywords. No explanations.

Example output: Python, React, AWS, Machine Learning, Docker, PostgreSQL, REST APIs

Job Description:
{content}

Keywords:"""

RESUME_KEYWORDS_PROMPT = """You are a technical resume analyst. Extract all technical keywords from this resume.

Focus on programming languages, frameworks and libraries, tools and platforms,
technical skills and technologies mentioned.

Return ONLY a comma-separated list of unique keywords found in the resume. No explanations.

Resume Content:
{content}

Keywords:"""


class KeywordAnalysis(BaseModel):
    job_keywords: List[str] = Field(default_factory=list)
    resume_keywords: List[str] = Field(default_factory=list)
    missing_keywords: List[str] = Field(default_factory=list)
    keyword_frequency: Dict[str, int] = Field(default_factory=dict)
    # Percentage of job keywords found in the résumé, one decimal
    coverage: float = 0.0


def parse_keyword_list(text: str) -> List[str]:
    """Split a comma or newline separated LLM reply into unique keywords."""
    keywords: List[str] = []
    seen = set()
    for raw in re.split(r"[,\n]", clean_markdown_fences(text or "")):
        keyword = raw.strip().strip("-*• ").strip()
        if not keyword or len(keyword) >= MAX_KEYWORD_LENGTH or keyword.lower() in seen:
            continue
        seen.add(keyword.lower())
        keywords.append(keyword)
    return keywords


def analyze_keyword_gap(job_keywords: Sequence[str], resume_keywords: Sequence[str]) -> KeywordAnalysis:
    """Missing keywords and coverage of ``job_keywords`` by ``resume_keywords`` (case-insensitive)."""
    present = {k.lower() for k in resume_keywords}
    missing = [k for k in job_keywords if k.lower() not in present]

    frequency: Dict[str, int] = {}
    for keyword in resume_keywords:
        frequency[keyword] = frequency.get(keyword, 0) + 1

    matched = len(job_keywords) - len(missing)
    coverage = round(matched / len(job_keywords) * 100, 1) if job_keywords else 0.0
    logger.info(f"Keyword coverage: {coverage}% ({len(missing)} missing)")
    return KeywordAnalysis(
        job_keywords=list(job_keywords),
        resume_keywords=list(resume_keywords),
        missing_keywords=missing,
        keyword_frequency=frequency,
        coverage=coverage,
    )


def keywords_in_resume(resume: Resume, keywords: Sequence[str]) -> List[str]:
    """The given keywords that already appear in some bullet of ``resume``."""
    corpus = "\n".join(b.text for b in resume.iter_bullets()).lower()
    return [k for k in keywords if k.lower() in corpus]


class KeywordAnalyzer:
    """LLM keyword extraction; every call is recorded in the tracker."""

    def __init__(self, tracker: UsageTracker, session_id: str, client=None, model: Optional[str] = None):
        self.tracker = tracker
        self.session_id = session_id
        self._client = client
        self.model = model or Settings.from_env().llm_model

    def _get_client(self):
        """Lazy load the OpenAI client."""
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI()
        return self._client

    def _extract(self, operation: str, prompt: str) -> List[str]:
        started = time.monotonic()
        try:
            response = self._get_client().chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.0,
                max_tokens=300,
            )
            text = response.choices[0].message.content or ""
        except Exception as e:
            logger.error(f"Keyword extraction ({operation}) failed: {e}")
            self.tracker.record_llm_call(
                self.session_id, operation, self.model, 0, 0,
                (time.monotonic() - started) * 1000, success=False, error=str(e),
            )
            return []

        usage = getattr(response, "usage", None)
        self.tracker.record_llm_call(
            self.session_id,
            operation,
            self.model,
            getattr(usage, "prompt_tokens", None) or estimate_tokens(prompt),
            getattr(usage, "completion_tokens", None) or estimate_tokens(text),
            (time.monotonic() - started) * 1000,
        )
        keywords = parse_keyword_list(text)
        logger.info(f"Extracted {len(keywords)} keywords ({operation})")
        return keywords

    def extract_job_keywords(self, job_description: str) -> List[str]:
        """Technical keywords of a job description; empty on failure."""
        if not job_description.strip():
            return []
        return self._extract("extract_job_keywords", JOB_KEYWORDS_PROMPT.format(content=job_description))

    def extract_resume_keywords(self, resume: Resume) -> List[str]:
        """Technical keywords mentioned in the résumé's bullets; empty on failure."""
        lines = [b.text for b in resume.iter_bullets()]
        if not lines:
            return []
        return self._extract("extract_resume_keywords", RESUME_KEYWORDS_PROMPT.format(content="\n".join(lines)))
