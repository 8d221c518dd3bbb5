"""
CV scoring against a job offer.

The model is asked for a strict two-part answer:

    SCORE: <0-100>
    ANALYSE: <free text>

Anything that does not follow the format still yields a result: a missing
score becomes 0 and the whole reply is kept as the analysis.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from app.llm.provider import LLMProvider
from app.llm.openai_provider import get_provider

logger = logging.getLogger(__name__)

MAX_CV_CHARS = 12000

SCORE_PATTERN = re.compile(r"SCORE\s*:\s*(-?\d+)", re.IGNORECASE)
ANALYSIS_PATTERN = re.compile(r"ANALYS[EI]S?\s*:\s*(.+)", re.IGNORECASE | re.DOTALL)

SCORING_PROMPT = """Tu es un expert en recrutement. Analyse ce CV par rapport à l'offre d'emploi et fournis un score de 0 à 100 ainsi qu'une analyse détaillée.

**Offre d'emploi:**
Description: {description}

Exigences: {requirements}

**CV du candidat:**
{cv_text}

**Instructions:**
1. Analyse les compétences, l'expérience et la formation du candidat
2. Compare-les aux exigences du poste
3. Donne un score de 0 à 100 (0 = pas du tout qualifié, 100 = parfaitement qualifié)
4. Fournis une analyse détaillée en français (200-300 mots) qui explique les points forts, les manques, les compétences transférables et une recommandation finale

**Format de réponse (STRICT):**
SCORE: [nombre entre 0 et 100]
ANALYSE: [ton analyse détaillée ici]"""


class ScoringError(Exception):
    """The LLM call failed or returned nothing usable."""


@dataclass
class CVScore:
    score: int
    analysis: str


def clamp_score(value: int) -> int:
    return max(0, min(100, value))


def parse_scoring_response(text: str) -> CVScore:
    """Extract score and analysis from a model reply."""
    score_match = SCORE_PATTERN.search(text or "")
    analysis_match = ANALYSIS_PATTERN.search(text or "")

    score = clamp_score(int(score_match.group(1))) if score_match else 0
    analysis = analysis_match.group(1).strip() if analysis_match else (text or "").strip()

    return CVScore(score=score, analysis=analysis or "Analyse non disponible")


def score_cv(
    cv_text: str,
    description: str,
    requirements: str,
    provider: Optional[LLMProvider] = None,
) -> CVScore:
    """
    Score a CV against a job description and requirements.

    Raises:
        ScoringError: If the provider is unavailable or the call fails
    """
    if not cv_text or not cv_text.strip():
        raise ScoringError("No text could be extracted from the CV")

    prompt = SCORING_PROMPT.format(
        description=description,
        requirements=requirements,
        cv_text=cv_text[:MAX_CV_CHARS],
    )

    try:
        provider = provider or get_provider()
        response = provider.chat(
            messages=[{"role": "user", "content": prompt}],
            temperature=0.3,
            max_tokens=1000,
        )
    except Exception as e:
        logger.error(f"CV scoring failed: {e}", exc_info=True)
        raise ScoringError("AI analysis of the CV failed") from e

    result = parse_scoring_response(response.content)
    logger.info(
        f"CV scored: score={result.score}, model={response.model}, "
        f"tokens_in={response.tokens_in}, tokens_out={response.tokens_out}"
    )
    return result
