"""
pt-BR WhatsApp message templates sent to patients.

Messages address the patient by first name and pick the form of address from
the registered gender. Surgery times are rendered in clinic-local time.
"""

from typing import Optional

from ...config import DEFAULT_HOSPITAL, DEFAULT_SURGEON_NAME
from ...shared.clock import to_clinic_tz

PRE_OP = "pre_op"
POST_OP = "post_op"
EXAM_FOLLOWUP = "exam_followup"

TEMPLATE_TYPES = (PRE_OP, POST_OP, EXAM_FOLLOWUP)

TEMPLATE_BUTTON_LABELS = {
    PRE_OP: "Enviar Instruções Pré-Op",
    POST_OP: "Enviar Recomendações Pós-Op",
    EXAM_FOLLOWUP: "Enviar Cobrança de Exame",
}


def first_name(name: str) -> str:
    parts = (name or "").split()
    return parts[0] if parts else ""


def treatment_for(gender: Optional[str]) -> str:
    if gender == "masculino":
        return "o senhor"
    if gender == "feminino":
        return "a senhora"
    return "você"


def pre_op_message(patient) -> Optional[str]:
    """Instructions for the day before surgery; None without a surgery date."""
    if not patient.surgery_date:
        return None

    surgery = to_clinic_tz(patient.surgery_date)
    pronoun_suffix = "lo" if treatment_for(patient.gender) == "o senhor" else "la"
    hospital = patient.hospital or DEFAULT_HOSPITAL

    return (
        f"Olá, {first_name(patient.name)}.\n"
        "Estou vindo aqui para passar as instruções para o seu procedimento.\n"
        "\n"
        f"📍 A sua cirurgia — {patient.procedure} — está agendada para amanhã "
        f"({surgery:%d/%m/%Y}) às {surgery:%H:%M}, no {hospital}.\n"
        "⏰ Solicitamos que chegue com 2 horas de antecedência para os preparativos.\n"
        "🥣 É necessário realizar jejum absoluto de 8 horas (sólidos e líquidos) "
        "antes do horário da cirurgia.\n"
        "\n"
        f"Qualquer dúvida, estou à disposição para orientá-{pronoun_suffix}."
    )


def post_op_message(patient) -> str:
    treatment = treatment_for(patient.gender)
    return (
        f"Olá, {first_name(patient.name)}! \n"
        f"Espero que {treatment} esteja se recuperando bem da cirurgia.\n"
        "\n"
        "📋 Recomendações pós-operatórias:\n"
        f"• Mantenha repouso conforme orientado pelo {DEFAULT_SURGEON_NAME}\n"
        "• Tome os medicamentos prescritos nos horários corretos\n"
        "• Observe a região operada e comunique qualquer alteração\n"
        "• Evite esforço físico nas primeiras semanas\n"
        "• Mantenha a alimentação leve e saudável\n"
        "• Compareça às consultas de retorno agendadas\n"
        "\n"
        "Em caso de dúvidas ou qualquer sintoma preocupante, entre em contato imediatamente.\n"
        "\n"
        "Qualquer dúvida, estou à disposição.\n"
        "Melhoras! 🌸"
    )


def exam_followup_message(patient, exam_name: Optional[str] = None) -> str:
    exam = (exam_name or "").strip() or "exame"
    return (
        f"Olá, {first_name(patient.name)}! Tudo bem?\n"
        f"Gostaria de confirmar se você já realizou o exame {exam}.\n"
        "Se sim, poderia me avisar se já tem os resultados em mãos?\n"
        "Caso ainda não tenha feito, tem previsão de quando pretende realizar?\n"
        "\n"
        "Obrigada pela atenção."
    )


def build_message(template: str, patient, exam_name: Optional[str] = None) -> Optional[str]:
    if template == PRE_OP:
        return pre_op_message(patient)
    if template == POST_OP:
        return post_op_message(patient)
    if template == EXAM_FOLLOWUP:
        return exam_followup_message(patient, exam_name)
    raise ValueError(f"Unknown WhatsApp template: {template}")
