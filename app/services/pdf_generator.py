"""
PDF document generation using ReportLab's Platypus framework.

ESAS screening report layout:
- Title + screening date and type
- Patient identity table
- Score table (one row per ESAS question, primary symptom highlighted)
- Classification summary
- Nursing recommendation: diagnosis, therapy, intervention steps, frequency, references
- Provider signature block

Optional fields that were never provided print as "Tidak tersedia".
"""

import logging
from io import BytesIO
from typing import List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm, inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, ListFlowable, ListItem

from app.schemas.report import ReportView

logger = logging.getLogger(__name__)

RISK_COLORS = {
    "high": colors.HexColor('#C0392B'),
    "medium": colors.HexColor('#E67E22'),
    "low": colors.HexColor('#27AE60'),
}

PRIMARY_ROW_COLOR = colors.HexColor('#FDEBD0')


class PDFGenerator:
    """
    ESAS report renderer
    """

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self.setup_custom_styles()

    def setup_custom_styles(self):
        """Setup custom paragraph styles for screening reports"""
        self.styles.add(ParagraphStyle(
            name='MedicalTitle',
            parent=self.styles['Heading1'],
            fontSize=16,
            textColor=colors.HexColor('#0F4C75'),
            spaceAfter=12,
            alignment=TA_CENTER,
            fontName='Helvetica-Bold',
        ))

        self.styles.add(ParagraphStyle(
            name='MedicalHeading',
            parent=self.styles['Heading2'],
            fontSize=12,
            textColor=colors.HexColor('#1B9AAA'),
            spaceAfter=8,
            spaceBefore=12,
            alignment=TA_LEFT,
            fontName='Helvetica-Bold',
        ))

        self.styles.add(ParagraphStyle(
            name='MedicalBody',
            parent=self.styles['Normal'],
            fontSize=10,
            spaceAfter=6,
            alignment=TA_LEFT,
            fontName='Helvetica',
        ))

        self.styles.add(ParagraphStyle(
            name='MedicalFooter',
            parent=self.styles['Normal'],
            fontSize=9,
            textColor=colors.grey,
            alignment=TA_CENTER,
            fontName='Helvetica-Oblique',
        ))

    def generate_screening_report(self, report: ReportView) -> bytes:
        """
        Render one screening report

        Args:
            report: Assembled report view

        Returns:
            PDF file as bytes
        """
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=1.5*cm,
            leftMargin=1.5*cm,
            topMargin=2*cm,
            bottomMargin=2*cm,
            title=f"Laporan Screening ESAS {report.screening.id}",
        )
        story = []

        story.append(Paragraph("LAPORAN SCREENING ESAS", self.styles['MedicalTitle']))
        story.append(Paragraph(
            f"{escape(report.screening.screening_type_label)} - "
            f"{report.screening.date.strftime('%d/%m/%Y %H:%M')}",
            self.styles['MedicalFooter'],
        ))
        story.append(Spacer(1, 15))

        story.append(Paragraph("IDENTITAS PASIEN", self.styles['MedicalHeading']))
        story.append(self._create_patient_table(report))

        story.append(Paragraph("HASIL PENILAIAN GEJALA", self.styles['MedicalHeading']))
        story.append(self._create_scores_table(report))

        story.append(Paragraph("KLASIFIKASI", self.styles['MedicalHeading']))
        story.append(self._create_classification_table(report))

        story.append(Paragraph("REKOMENDASI INTERVENSI", self.styles['MedicalHeading']))
        story.extend(self._create_recommendation_section(report))

        story.append(Spacer(1, 30))
        story.extend(self._create_provider_signature(report))

        story.append(Spacer(1, 20))
        story.append(Paragraph(
            "Edmonton Symptom Assessment System (ESAS) - skala 0 (tidak ada keluhan) sampai 10 (keluhan terberat)",
            self.styles['MedicalFooter'],
        ))

        doc.build(story)
        buffer.seek(0)
        logger.info(f"Rendered PDF report for screening {report.screening.id}")
        return buffer.getvalue()

    def _label_table(self, rows: List[List[str]]) -> Table:
        table = Table(
            [[label, Paragraph(escape(value), self.styles['MedicalBody'])] for label, value in rows],
            colWidths=[2*inch, 5*inch],
        )
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (0, -1), colors.HexColor('#F0F0F0')),
            ('TEXTCOLOR', (0, 0), (0, -1), colors.HexColor('#0F4C75')),
            ('ALIGN', (0, 0), (0, -1), 'LEFT'),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (0, -1), 10),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('TOPPADDING', (0, 0), (-1, -1), 6),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.lightgrey),
        ]))
        return table

    def _create_patient_table(self, report: ReportView) -> Table:
        patient = report.patient
        return self._label_table([
            ['Nama:', patient.name],
            ['Usia:', f"{patient.age} tahun"],
            ['Jenis Kelamin:', patient.gender_label],
            ['Fasilitas Kesehatan:', patient.facility_name.display()],
        ])

    def _create_scores_table(self, report: ReportView) -> Table:
        data = [['No', 'Gejala', 'Skor', 'Tingkat']]
        primary_row = None
        for index, question in enumerate(report.questions, start=1):
            data.append([str(question.question_id), question.text, str(question.score), question.level])
            if question.is_primary:
                primary_row = index

        table = Table(data, colWidths=[0.6*inch, 3.6*inch, 1*inch, 1.8*inch])
        commands = [
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#1B9AAA')),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('ALIGN', (2, 0), (2, -1), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 10),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('TOPPADDING', (0, 0), (-1, -1), 6),
            ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 1), (-1, -1), 9),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.lightgrey),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#F9F9F9')]),
        ]
        if primary_row is not None:
            commands.extend([
                ('BACKGROUND', (0, primary_row), (-1, primary_row), PRIMARY_ROW_COLOR),
                ('FONTNAME', (0, primary_row), (-1, primary_row), 'Helvetica-Bold'),
            ])
        table.setStyle(TableStyle(commands))
        return table

    def _create_classification_table(self, report: ReportView) -> Table:
        screening = report.screening
        primary = next(q for q in report.questions if q.is_primary)
        table = self._label_table([
            ['Skor Tertinggi:', str(screening.highest_score)],
            ['Gejala Utama:', f"{primary.text} (pertanyaan {screening.primary_question})"],
            ['Tingkat Risiko:', screening.risk_level_label],
            ['Tindakan:', screening.action_required],
        ])
        table.setStyle(TableStyle([
            ('TEXTCOLOR', (1, 2), (1, 2), RISK_COLORS.get(screening.risk_level, colors.black)),
        ]))
        return table

    def _create_recommendation_section(self, report: ReportView) -> list:
        screening = report.screening
        elements = [self._label_table([
            ['Diagnosis Keperawatan:', screening.diagnosis],
            ['Terapi Komplementer:', screening.therapy_type],
            ['Frekuensi:', screening.frequency],
        ])]

        if screening.intervention_steps:
            elements.append(Paragraph("<b>Langkah Intervensi:</b>", self.styles['MedicalBody']))
            elements.append(ListFlowable(
                [ListItem(Paragraph(escape(step), self.styles['MedicalBody'])) for step in screening.intervention_steps],
                bulletType='1',
            ))

        if screening.references:
            elements.append(Paragraph("<b>Referensi:</b>", self.styles['MedicalBody']))
            for reference in screening.references:
                elements.append(Paragraph(escape(reference), self.styles['MedicalFooter']))

        return elements

    def _create_provider_signature(self, report: ReportView) -> list:
        """Signature block; an absent provider still prints the placeholders"""
        provider = report.provider
        elements = [
            Paragraph("Petugas Kesehatan", self.styles['MedicalBody']),
            Spacer(1, 30),
            Paragraph("_" * 50, self.styles['Normal']),
            Paragraph(escape(provider.name.display()), self.styles['MedicalBody']),
            Paragraph(f"Jabatan: {escape(provider.title.display())}", self.styles['MedicalBody']),
            Paragraph(f"No. STR: {escape(provider.license_number.display())}", self.styles['MedicalBody']),
        ]
        return elements


pdf_generator = PDFGenerator()
