"""
Email templates. Each builder returns (subject, html).
"""
from html import escape
from typing import Tuple, Optional

from app.core.config import FRONTEND_URL

LAYOUT = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1.0"></head>
<body style="font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background: {color}; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
    <h1 style="color: white; margin: 0; font-size: 24px;">{heading}</h1>
  </div>
  <div style="background: #f9fafb; padding: 30px; border-radius: 0 0 10px 10px;">
    {content}
    <div style="text-align: center; margin: 30px 0;">
      <a href="{link}" style="background: #667eea; color: white; padding: 12px 30px; text-decoration: none; border-radius: 6px; display: inline-block;">{button}</a>
    </div>
    <p style="font-size: 12px; color: #999; text-align: center;">Selectif - Recrutement assisté par IA</p>
  </div>
</body>
</html>"""

PRIMARY = "linear-gradient(135deg, #667eea 0%, #764ba2 100%)"
SUCCESS = "linear-gradient(135deg, #10b981 0%, #059669 100%)"
NEUTRAL = "linear-gradient(135deg, #6b7280 0%, #4b5563 100%)"


def _render(heading: str, content: str, link: str, button: str, color: str = PRIMARY) -> str:
    return LAYOUT.format(heading=heading, content=content, link=link, button=button, color=color)


def _job_box(job_title: str, line: Optional[str] = None) -> str:
    extra = f'<p style="margin: 10px 0 0 0; color: #666;">{line}</p>' if line else ""
    return (
        '<div style="background: white; padding: 20px; border-radius: 8px; border-left: 4px solid #667eea; margin: 20px 0;">'
        f'<p style="margin: 0; color: #667eea; font-weight: bold; font-size: 18px;">{escape(job_title)}</p>{extra}</div>'
    )


def new_application_for_company(company_name: str, candidate_name: str, job_title: str) -> Tuple[str, str]:
    content = (
        f"<p>Bonjour <strong>{escape(company_name)}</strong>,</p>"
        "<p>Bonne nouvelle ! Vous avez reçu une nouvelle candidature pour votre offre :</p>"
        + _job_box(job_title, f"Candidat : <strong>{escape(candidate_name)}</strong>")
        + "<p>Lancez l'analyse IA du CV depuis votre tableau de bord.</p>"
    )
    html = _render("Nouvelle candidature", content, f"{FRONTEND_URL}/dashboard/applications", "Voir la candidature")
    return f"Nouvelle candidature - {job_title}", html


def application_confirmation_for_candidate(candidate_name: str, job_title: str, company_name: str) -> Tuple[str, str]:
    content = (
        f"<p>Bonjour <strong>{escape(candidate_name)}</strong>,</p>"
        f"<p>Votre candidature a bien été transmise à <strong>{escape(company_name)}</strong> :</p>"
        + _job_box(job_title)
        + "<p>Vous serez informé(e) par email de l'évolution de votre candidature.</p>"
    )
    html = _render("Candidature envoyée", content, f"{FRONTEND_URL}/jobs", "Voir d'autres offres", SUCCESS)
    return f"Candidature envoyée - {job_title}", html


def ai_analysis_complete_for_company(company_name: str, candidate_name: str, job_title: str, score: int) -> Tuple[str, str]:
    content = (
        f"<p>Bonjour <strong>{escape(company_name)}</strong>,</p>"
        "<p>L'analyse IA de la candidature suivante est terminée :</p>"
        + _job_box(job_title, f"Candidat : <strong>{escape(candidate_name)}</strong> - Score : <strong>{score}/100</strong>")
    )
    html = _render("Analyse IA terminée", content, f"{FRONTEND_URL}/dashboard/applications", "Voir l'analyse")
    return f"Analyse IA terminée - {candidate_name} ({score}/100)", html


def shortlisted_for_candidate(candidate_name: str, job_title: str, company_name: str) -> Tuple[str, str]:
    content = (
        f"<p>Bonjour <strong>{escape(candidate_name)}</strong>,</p>"
        f"<p>Félicitations ! <strong>{escape(company_name)}</strong> a retenu votre candidature pour la suite du processus :</p>"
        + _job_box(job_title)
        + "<p>L'entreprise reviendra vers vous prochainement.</p>"
    )
    html = _render("Candidature retenue", content, f"{FRONTEND_URL}/dashboard/my-applications", "Suivre ma candidature", SUCCESS)
    return f"Votre candidature a été retenue - {job_title}", html


def rejected_for_candidate(candidate_name: str, job_title: str, company_name: str) -> Tuple[str, str]:
    content = (
        f"<p>Bonjour <strong>{escape(candidate_name)}</strong>,</p>"
        f"<p>Merci pour l'intérêt porté à <strong>{escape(company_name)}</strong>. "
        "Après étude, votre candidature n'a pas été retenue pour ce poste :</p>"
        + _job_box(job_title)
        + "<p>Nous vous souhaitons plein succès dans vos recherches.</p>"
    )
    html = _render("Réponse à votre candidature", content, f"{FRONTEND_URL}/jobs", "Voir d'autres offres", NEUTRAL)
    return f"Réponse à votre candidature - {job_title}", html


def contacted_for_candidate(candidate_name: str, job_title: str, company_name: str) -> Tuple[str, str]:
    content = (
        f"<p>Bonjour <strong>{escape(candidate_name)}</strong>,</p>"
        f"<p><strong>{escape(company_name)}</strong> souhaite échanger avec vous au sujet de l'offre :</p>"
        + _job_box(job_title)
        + "<p>Surveillez votre boîte mail et votre téléphone.</p>"
    )
    html = _render("Un recruteur vous contacte", content, f"{FRONTEND_URL}/dashboard/my-applications", "Suivre ma candidature", SUCCESS)
    return f"{company_name} souhaite vous contacter - {job_title}", html


STATUS_TEMPLATES = {
    "SHORTLISTED": shortlisted_for_candidate,
    "REJECTED": rejected_for_candidate,
    "CONTACTED": contacted_for_candidate,
}
