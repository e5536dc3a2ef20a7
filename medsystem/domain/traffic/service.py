"""Paid-traffic report ingestion: PDF upload, AI extraction, lead import"""

import asyncio
import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ... import storage
from ...models import PaidTrafficReport, Patient, PatientStatus, Profile
from ...shared.clock import clinic_now
from .ai_extractor import (
    AICreditsExhaustedError,
    AIGatewayError,
    AIRateLimitError,
    TrafficReportExtractor,
)
from .pdf_extractor import extract_pdf_text

logger = logging.getLogger(__name__)

LEAD_PROCEDURE = "simpatectomia"
LEAD_ORIGIN = "trafego pago"
REPORT_PLATFORM = "Leads"

COUNT_FIELDS = (
    "total_leads",
    "scheduled_appointments",
    "not_scheduled",
    "awaiting_response",
    "no_continuity",
    "no_contact_after_attempts",
    "leads_outside_brasilia",
    "active_leads",
    "in_progress",
)


def is_pdf(file_name: Optional[str], content_type: Optional[str]) -> bool:
    return "pdf" in (content_type or "").lower() or (file_name or "").lower().endswith(".pdf")


def parse_report_date(value) -> Optional[date]:
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def parse_count(value) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def scheduled_patient_names(extracted: dict) -> list[str]:
    names = extracted.get("scheduled_patients")
    if not isinstance(names, list):
        return []
    return [n.strip() for n in names if isinstance(n, str) and n.strip()]


class TrafficReportService:
    def __init__(self, db: Session, extractor: Optional[TrafficReportExtractor] = None):
        self.db = db
        self.extractor = extractor or TrafficReportExtractor()

    async def analyze(
        self,
        profile: Profile,
        file_name: Optional[str] = None,
        content_type: Optional[str] = None,
        data: Optional[bytes] = None,
        text: Optional[str] = None,
        pdf_file_name: Optional[str] = None,
    ) -> dict:
        """Store a report from an uploaded PDF or from text already extracted client-side"""
        pdf_path = None

        if data is None:
            if not (text or "").strip():
                raise HTTPException(status_code=400, detail="Arquivo PDF não fornecido")
        else:
            if not is_pdf(file_name, content_type):
                raise HTTPException(
                    status_code=400,
                    detail="Arquivo inválido. Por favor, envie um arquivo PDF.",
                )
            if len(data) > storage.MAX_UPLOAD_SIZE:
                raise HTTPException(
                    status_code=400, detail="Arquivo muito grande. Tamanho máximo: 10MB"
                )

            pdf_path = storage.build_traffic_report_key(file_name or "relatorio.pdf")
            try:
                storage.upload_object(
                    storage.TRAFFIC_REPORTS_BUCKET, pdf_path, data, "application/pdf"
                )
            except storage.StorageError as e:
                raise HTTPException(status_code=500, detail="Erro ao fazer upload do PDF") from e

            try:
                text = await asyncio.to_thread(extract_pdf_text, data)
            except (RuntimeError, ValueError) as e:
                logger.error(f"❌ Could not read PDF {pdf_path}: {e}")
                text = ""
            if not text:
                self._discard_pdf(pdf_path)
                raise HTTPException(
                    status_code=400,
                    detail="PDF não pode ser processado. Verifique se o arquivo contém texto.",
                )
            pdf_file_name = pdf_file_name or file_name

        try:
            extracted = await self.extractor.extract(text)
        except AIRateLimitError as e:
            self._discard_pdf(pdf_path)
            raise HTTPException(status_code=429, detail=str(e)) from e
        except AICreditsExhaustedError as e:
            self._discard_pdf(pdf_path)
            raise HTTPException(status_code=402, detail=str(e)) from e
        except AIGatewayError as e:
            self._discard_pdf(pdf_path)
            raise HTTPException(status_code=500, detail=str(e)) from e

        try:
            report = self._store_report(extracted, profile, pdf_path, pdf_file_name)
        except HTTPException:
            self._discard_pdf(pdf_path)
            raise
        created = self._import_leads(extracted, profile)
        return {"report": report, "patients_created": created}

    @staticmethod
    def _discard_pdf(pdf_path: Optional[str]) -> None:
        """Remove an uploaded PDF whose report was never saved"""
        if not pdf_path:
            return
        try:
            storage.delete_object(storage.TRAFFIC_REPORTS_BUCKET, pdf_path)
            logger.info(f"🗑️ Discarded unprocessed PDF {pdf_path}")
        except storage.StorageError:
            logger.warning(f"⚠️ Orphaned object {storage.TRAFFIC_REPORTS_BUCKET}/{pdf_path}")

    def _store_report(
        self,
        extracted: dict,
        profile: Profile,
        pdf_path: Optional[str],
        pdf_file_name: Optional[str],
    ) -> PaidTrafficReport:
        period_start = parse_report_date(extracted.get("period_start"))
        period_end = parse_report_date(extracted.get("period_end"))
        concierge = extracted.get("concierge_name")

        report = PaidTrafficReport(
            report_date=period_end or period_start or clinic_now().date(),
            platform=REPORT_PLATFORM,
            period_start=period_start,
            period_end=period_end,
            concierge_name=concierge if isinstance(concierge, str) else None,
            pdf_file_path=pdf_path,
            pdf_file_name=pdf_file_name,
            raw_data=extracted,
            created_by=profile.id,
            **{field: parse_count(extracted.get(field)) for field in COUNT_FIELDS},
        )
        self.db.add(report)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save traffic report: {e}")
            raise HTTPException(status_code=500, detail="Erro ao salvar dados do relatório.") from e
        self.db.refresh(report)
        logger.info(f"📊 Traffic report {report.id} saved ({report.total_leads} leads)")
        return report

    def _import_leads(self, extracted: dict, profile: Profile) -> list[str]:
        """One patient per scheduled lead; a bad row is skipped, the report stays"""
        created = []
        for name in scheduled_patient_names(extracted):
            try:
                self.db.add(
                    Patient(
                        name=name[:200],
                        procedure=LEAD_PROCEDURE,
                        origem=LEAD_ORIGIN,
                        status=PatientStatus.AWAITING_AUTHORIZATION.value,
                        exams_checklist=[],
                        created_by=profile.id,
                    )
                )
                self.db.commit()
                created.append(name)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Failed to create lead patient {name}: {e}")
        if created:
            logger.info(f"👤 {len(created)} lead patient(s) created from traffic report")
        return created

    def list_reports(self) -> list[PaidTrafficReport]:
        return (
            self.db.query(PaidTrafficReport)
            .order_by(PaidTrafficReport.report_date.desc(), PaidTrafficReport.created_at.desc())
            .all()
        )

    def delete_report(self, report_id: str) -> dict:
        report = self.db.query(PaidTrafficReport).filter(PaidTrafficReport.id == report_id).first()
        if not report:
            raise HTTPException(status_code=404, detail="Relatório não encontrado")

        pdf_path = report.pdf_file_path
        self.db.delete(report)
        self.db.commit()

        if pdf_path:
            try:
                storage.delete_object(storage.TRAFFIC_REPORTS_BUCKET, pdf_path)
            except storage.StorageError:
                logger.warning(f"⚠️ Orphaned object {storage.TRAFFIC_REPORTS_BUCKET}/{pdf_path}")
        logger.info(f"🗑️ Traffic report {report_id} deleted")
        return {"success": True}
