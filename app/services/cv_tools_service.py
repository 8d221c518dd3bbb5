"""
AI CV tools for candidates: generate a CV, rewrite one section, adapt a CV
to a job offer, and read the text out of an uploaded PDF.

Every LLM call consumes one unit of the candidate's monthly AI quota up
front and gives it back when the call fails. Structured results come back
as JSON objects shaped like:

    {"personalInfo": {"title", "summary"}, "experience": [...],
     "education": [...], "skills": [...]}
"""
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any, Callable

from sqlalchemy.orm import Session

from app.core.config import MAX_CV_SIZE_BYTES
from app.core.plan_limits import CV_ADAPTATION_PLANS
from app.db.models.user import User
from app.llm.provider import LLMProvider
from app.llm.openai_provider import get_provider
from app.services.audit_service import record_audit
from app.services.cv_parser import read_pdf, looks_like_pdf, CVParseError
from app.services.entitlement_service import (
    EntitlementResult,
    consume_ai_analysis,
    refund_ai_analysis,
    get_or_create_subscription,
)

logger = logging.getLogger(__name__)

MAX_CV_CHARS = 12000
MIN_PDF_TEXT_CHARS = 50
IMPROVABLE_SECTIONS = ("summary", "experience", "skills")
ITEM_PREFIXES = {"experience": "exp", "education": "edu", "skills": "skill"}

CV_JSON_FORMAT = """{
  "personalInfo": {"title": "Titre professionnel", "summary": "Résumé de 3-4 phrases"},
  "experience": [{"position": "", "company": "", "startDate": "AAAA-MM", "endDate": "AAAA-MM", "current": false, "description": "• Réalisation\\n• Réalisation"}],
  "education": [{"degree": "", "field": "", "school": "", "startDate": "AAAA-MM", "endDate": "AAAA-MM", "current": false}],
  "skills": [{"name": "", "level": "Expert|Avancé|Intermédiaire|Débutant"}]
}"""

GENERATE_SYSTEM = (
    "Tu es un expert en rédaction de CV qui génère des CV optimisés pour les recruteurs. "
    "Tu réponds toujours avec du JSON valide, sans texte additionnel."
)

GENERATE_PROMPT = """Génère un CV professionnel et moderne pour un candidat:

- Poste visé: {job_title}
- Années d'expérience: {years_experience}
- Compétences: {skills}
- Formation: {education}
- Secteur cible: {target_industry}

**Instructions:**
1. Utilise des verbes d'action et quantifie les résultats
2. Optimise pour les logiciels de tri de candidatures (mots-clés du poste)
3. Propose 3 expériences réalistes, 2-3 formations et 8-10 compétences
4. Rédige un résumé professionnel percutant de 3-4 phrases

Réponds UNIQUEMENT avec un JSON dans ce format:
{cv_format}"""

ADAPT_SYSTEM = (
    "Tu es un expert en optimisation de CV qui génère uniquement du JSON valide. "
    "Tu n'inventes JAMAIS d'information: tu reformules et réorganises le contenu existant du candidat."
)

ADAPT_PROMPT = """Adapte ce CV à l'offre d'emploi ci-dessous.

**Offre d'emploi:**
{job_offer}

**CV actuel du candidat:**
{cv_content}

**Instructions:**
1. N'invente aucune expérience ni compétence
2. Place les expériences les plus pertinentes en premier
3. Reformule résumé et descriptions avec le vocabulaire de l'offre
4. Ne garde dans les compétences que celles que le candidat possède déjà
5. Garde le même nombre d'expériences, de formations et de compétences

Réponds UNIQUEMENT avec un JSON dans ce format:
{cv_format}"""

IMPROVE_PROMPTS = {
    "summary": """Améliore ce résumé professionnel pour le rendre plus percutant. Contexte: {context}

Résumé actuel: "{content}"

3-4 phrases maximum, verbes d'action forts, mots-clés du secteur, ton professionnel.
Réponds avec un JSON: {{"content": "résumé amélioré"}}""",
    "experience": """Améliore cette description d'expérience professionnelle. Contexte: {context}

Description actuelle: "{content}"

Transforme-la en 3 à 5 points d'accomplissement (format "• Point"), chacun commençant par un verbe d'action, avec des résultats quantifiés.
Réponds avec un JSON: {{"content": "description améliorée"}}""",
    "skills": """Suggère 8 à 10 compétences pertinentes pour: {context}

Compétences actuelles: {content}

Mélange compétences techniques, outils et soft skills recherchés par les recruteurs.
Réponds avec un JSON: {{"content": [{{"name": "Compétence", "level": "Expert|Avancé|Intermédiaire"}}]}}""",
}


class CVToolError(Exception):
    """Request cannot be processed. `status_code` hints the HTTP mapping."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CVToolLimitError(Exception):
    def __init__(self, result: EntitlementResult):
        super().__init__(result.reason)
        self.result = result


@dataclass
class CVProfileRequest:
    job_title: str
    years_experience: Optional[str] = None
    skills: Optional[str] = None
    education: Optional[str] = None
    target_industry: Optional[str] = None


def with_item_ids(cv: Dict[str, Any]) -> Dict[str, Any]:
    """Give every experience, education and skill entry an id, keeping existing ones."""
    for section, prefix in ITEM_PREFIXES.items():
        items = cv.get(section)
        if not isinstance(items, list):
            continue
        cv[section] = [
            {**item, "id": item.get("id") or f"{prefix}-{uuid.uuid4().hex[:8]}"}
            for item in items
            if isinstance(item, dict)
        ]
    return cv


def _ask_json(provider: Optional[LLMProvider], system: str, prompt: str, temperature: float) -> Dict[str, Any]:
    """
    Raises:
        CVToolError: 502 if the call fails or the reply is not a JSON object
    """
    try:
        provider = provider or get_provider()
        response = provider.chat(
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=4000,
            response_format={"type": "json_object"},
        )
    except Exception as e:
        logger.error(f"CV tool LLM call failed: {e}", exc_info=True)
        raise CVToolError("The AI service is unavailable, please retry", status_code=502) from e

    try:
        data = json.loads(response.content)
    except ValueError as e:
        logger.warning(f"CV tool reply is not JSON: model={response.model}, length={len(response.content)}")
        raise CVToolError("The AI returned an unreadable answer, please retry", status_code=502) from e
    if not isinstance(data, dict):
        raise CVToolError("The AI returned an unreadable answer, please retry", status_code=502)

    logger.info(f"CV tool reply: model={response.model}, tokens_in={response.tokens_in}, tokens_out={response.tokens_out}")
    return data


def _metered(db: Session, user: User, now: Optional[datetime], run: Callable[[], Any]) -> Any:
    """Run an LLM task against the monthly AI quota."""
    result = consume_ai_analysis(db, user, now)
    if not result.allowed:
        raise CVToolLimitError(result)
    try:
        return run()
    except CVToolError:
        refund_ai_analysis(db, user)
        raise


def generate_cv(
    db: Session,
    user: User,
    request: CVProfileRequest,
    provider: Optional[LLMProvider] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Draft a complete CV from a short profile.

    Raises:
        CVToolError: 400 without a job title, 502 when the AI fails
        CVToolLimitError: If the monthly AI quota is exhausted
    """
    if not (request.job_title or "").strip():
        raise CVToolError("A target job title is required")

    prompt = GENERATE_PROMPT.format(
        job_title=request.job_title.strip(),
        years_experience=request.years_experience or "débutant",
        skills=request.skills or "à définir",
        education=request.education or "à définir",
        target_industry=request.target_industry or "général",
        cv_format=CV_JSON_FORMAT,
    )
    cv = _metered(db, user, now, lambda: _ask_json(provider, GENERATE_SYSTEM, prompt, temperature=0.7))

    logger.info(f"CV generated: user_id={user.id}, job_title={request.job_title}")
    return with_item_ids(cv)


def improve_section(
    db: Session,
    user: User,
    section: str,
    content: Optional[str],
    context: Optional[str] = None,
    provider: Optional[LLMProvider] = None,
    now: Optional[datetime] = None,
):
    """
    Rewrite one CV section. Returns text for summary and experience, a list
    of {name, level, id} for skills.

    Raises:
        CVToolError: 400 for an unknown section, 502 when the AI fails
        CVToolLimitError: If the monthly AI quota is exhausted
    """
    if section not in IMPROVABLE_SECTIONS:
        raise CVToolError(f"Section must be one of {', '.join(IMPROVABLE_SECTIONS)}")

    prompt = IMPROVE_PROMPTS[section].format(
        content=content or "aucune",
        context=context or "profil professionnel général",
    )

    def run():
        data = _ask_json(provider, GENERATE_SYSTEM, prompt, temperature=0.7)
        improved = data.get("content")
        if section == "skills":
            if not isinstance(improved, list):
                raise CVToolError("The AI returned an unreadable answer, please retry", status_code=502)
            return with_item_ids({"skills": improved})["skills"]
        if not isinstance(improved, str) or not improved.strip():
            raise CVToolError("The AI returned an unreadable answer, please retry", status_code=502)
        return improved.strip()

    improved = _metered(db, user, now, run)
    logger.info(f"CV section improved: user_id={user.id}, section={section}")
    return improved


def _describe_cv(current_cv: Optional[Dict[str, Any]], cv_text: Optional[str]) -> str:
    if cv_text and cv_text.strip():
        return cv_text.strip()[:MAX_CV_CHARS]
    personal = current_cv.get("personalInfo") or {}
    return "\n".join([
        f"Titre: {personal.get('title') or 'Non spécifié'}",
        f"Résumé: {personal.get('summary') or 'Non spécifié'}",
        f"Expériences: {json.dumps(current_cv.get('experience') or [], ensure_ascii=False)}",
        f"Formation: {json.dumps(current_cv.get('education') or [], ensure_ascii=False)}",
        f"Compétences: {json.dumps(current_cv.get('skills') or [], ensure_ascii=False)}",
    ])[:MAX_CV_CHARS]


def adapt_cv(
    db: Session,
    user: User,
    job_offer: str,
    current_cv: Optional[Dict[str, Any]] = None,
    cv_text: Optional[str] = None,
    provider: Optional[LLMProvider] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Rewrite a CV, structured or plain text, for a given job offer.

    Raises:
        CVToolError: 403 outside premium plans, 400 without an offer or a CV,
            502 when the AI fails
        CVToolLimitError: If the monthly AI quota is exhausted
    """
    subscription = get_or_create_subscription(db, user)
    if subscription.plan not in CV_ADAPTATION_PLANS:
        raise CVToolError("Adapting a CV to an offer requires a premium plan", status_code=403)
    if not (job_offer or "").strip():
        raise CVToolError("A job offer is required")
    if not current_cv and not (cv_text or "").strip():
        raise CVToolError("A current CV, structured or as text, is required")

    prompt = ADAPT_PROMPT.format(
        job_offer=job_offer.strip(),
        cv_content=_describe_cv(current_cv, cv_text),
        cv_format=CV_JSON_FORMAT,
    )
    cv = _metered(db, user, now, lambda: _ask_json(provider, ADAPT_SYSTEM, prompt, temperature=0.5))

    record_audit(db, user.id, "ADAPT_CV_TO_JOB", "CV", user.id, {"job_offer_length": len(job_offer)})
    return with_item_ids(cv)


def parse_cv_pdf(data: bytes, file_name: str) -> Dict[str, Any]:
    """
    Text of an uploaded CV, for pasting into the adaptation form.

    Raises:
        CVToolError: If the file is not a readable PDF, too large, or has no text layer
    """
    if not data or not looks_like_pdf(data):
        raise CVToolError("The CV must be a PDF file")
    if len(data) > MAX_CV_SIZE_BYTES:
        raise CVToolError(f"The CV must not exceed {MAX_CV_SIZE_BYTES // (1024 * 1024)} MB")

    try:
        text, pages = read_pdf(data)
    except CVParseError as e:
        raise CVToolError(str(e)) from e

    if len(text) < MIN_PDF_TEXT_CHARS:
        raise CVToolError("The PDF holds too little text. A scanned CV cannot be read")

    logger.info(f"CV PDF parsed: file_name={file_name}, pages={pages}, chars={len(text)}")
    return {"cv_text": text, "file_name": file_name, "pages": pages}
