"""
Excel export service for Escola Gestão
Handles Excel export for tuition, finance, payroll and grade reports
"""

import logging
from io import BytesIO
from datetime import datetime

import openpyxl
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter

logger = logging.getLogger(__name__)

MONTH_NAMES = ['Jan', 'Fev', 'Mar', 'Abr', 'Mai', 'Jun', 'Jul', 'Ago', 'Set', 'Out', 'Nov', 'Dez']
STATUS_LABELS = {'pago': 'Pago', 'pendente': 'Pendente', 'atrasado': 'Atrasado'}
MONEY_FORMAT = '#,##0.00'

class ExcelExportService:
    """Service for exporting reports to Excel"""

    @staticmethod
    def create_workbook():
        """Create a new workbook with default styling"""
        return openpyxl.Workbook()

    @staticmethod
    def style_header_row(ws, row_num, columns):
        """Apply styling to header row"""
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
        header_alignment = Alignment(horizontal="center", vertical="center")

        for col_num, header in enumerate(columns, 1):
            cell = ws.cell(row=row_num, column=col_num, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = header_alignment

    @staticmethod
    def auto_adjust_columns(ws):
        """Auto-adjust column widths"""
        for column in ws.columns:
            column_letter = get_column_letter(column[0].column)
            max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            ws.column_dimensions[column_letter].width = min(max_length + 2, 50)

    @staticmethod
    def set_money(cell, value):
        """Write a currency amount as a number"""
        cell.value = float(value) if value is not None else None
        cell.number_format = MONEY_FORMAT
        cell.alignment = Alignment(horizontal="right", vertical="center")
        return cell

    @staticmethod
    def write_info_table(ws, start_row, rows):
        """Field | Value block; returns the next free row"""
        ExcelExportService.style_header_row(ws, start_row, ['Campo', 'Valor'])
        row = start_row + 1
        for label, value in rows:
            ws.cell(row=row, column=1, value=label)
            ws.cell(row=row, column=2, value=value)
            row += 1
        return row

    @staticmethod
    def export_tuition_fees(fees, summary, filters=None):
        """Tuition fee listing with a totals block"""
        try:
            wb = ExcelExportService.create_workbook()
            ws = wb.active
            ws.title = "Mensalidades"

            filters = filters or {}
            info = [('Gerado em', datetime.now().strftime('%d/%m/%Y %H:%M'))]
            if filters.get('year'):
                info.append(('Ano', filters['year']))
            if filters.get('month'):
                info.append(('Mês', MONTH_NAMES[int(filters['month']) - 1]))
            if filters.get('status'):
                info.append(('Status', STATUS_LABELS.get(filters['status'], filters['status'])))
            row = ExcelExportService.write_info_table(ws, 1, info) + 1

            headers = ['Aluno', 'Referência', 'Vencimento', 'Valor', 'Status', 'Pago em', 'Descrição']
            ExcelExportService.style_header_row(ws, row, headers)
            row += 1

            for fee in fees:
                ws.cell(row=row, column=1, value=fee.student.full_name if fee.student else '')
                ws.cell(row=row, column=2, value=f"{fee.reference_month:02d}/{fee.reference_year}")
                ws.cell(row=row, column=3, value=fee.due_date.strftime('%d/%m/%Y') if fee.due_date else '')
                ExcelExportService.set_money(ws.cell(row=row, column=4), fee.amount)
                ws.cell(row=row, column=5, value=STATUS_LABELS.get(fee.status, fee.status))
                ws.cell(row=row, column=6, value=fee.paid_at.strftime('%d/%m/%Y') if fee.paid_at else '')
                ws.cell(row=row, column=7, value=fee.description or '')
                row += 1

            row += 1
            ExcelExportService.style_header_row(ws, row, ['Resumo', 'Quantidade', 'Total'])
            for label, count_key, total_key in (
                ('Pago', 'paid_count', 'paid_total'),
                ('Em aberto', 'pending_count', 'pending_total'),
                ('Atrasado', 'overdue_count', 'overdue_total'),
                ('Total', 'total_count', 'total'),
            ):
                row += 1
                ws.cell(row=row, column=1, value=label)
                ws.cell(row=row, column=2, value=summary.get(count_key, 0))
                ExcelExportService.set_money(ws.cell(row=row, column=3), summary.get(total_key, 0))

            ExcelExportService.auto_adjust_columns(ws)
            return ExcelExportService.workbook_to_bytes(wb)

        except Exception as e:
            logger.error("Error exporting tuition fees: %s", e)
            return None

    @staticmethod
    def export_finance_report(metrics, revenues, expenses):
        """Yearly finance overview, one sheet per ledger"""
        try:
            wb = ExcelExportService.create_workbook()
            ws = wb.active
            ws.title = "Resumo"

            row = ExcelExportService.write_info_table(ws, 1, [
                ('Ano', metrics['year']),
                ('Receitas', metrics['total_income']),
                ('Despesas pagas', metrics['total_expense']),
                ('Saldo', metrics['balance']),
                ('Despesas em aberto', metrics['pending_expense']),
            ])
            for money_row in range(3, row):
                ExcelExportService.set_money(ws.cell(row=money_row, column=2), ws.cell(row=money_row, column=2).value)

            row += 1
            ExcelExportService.style_header_row(ws, row, ['Mês', 'Receitas', 'Despesas', 'Saldo'])
            for item in metrics['monthly']:
                row += 1
                ws.cell(row=row, column=1, value=MONTH_NAMES[item['month'] - 1])
                ExcelExportService.set_money(ws.cell(row=row, column=2), item['income'])
                ExcelExportService.set_money(ws.cell(row=row, column=3), item['expense'])
                ExcelExportService.set_money(ws.cell(row=row, column=4), item['income'] - item['expense'])
            ExcelExportService.auto_adjust_columns(ws)

            ledgers = (
                ("Receitas", revenues, ['Data', 'Descrição', 'Categoria', 'Origem', 'Forma de pagamento', 'Valor'],
                 lambda r: [r.source]),
                ("Despesas", expenses, ['Data', 'Descrição', 'Categoria', 'Destino', 'Forma de pagamento', 'Valor',
                                        'Status'], lambda e: [e.destination]),
            )
            for title, entries, headers, party in ledgers:
                sheet = wb.create_sheet(title)
                ExcelExportService.style_header_row(sheet, 1, headers)
                for line, entry in enumerate(entries, start=2):
                    values = [
                        entry.date.strftime('%d/%m/%Y') if entry.date else '',
                        entry.description or '',
                        ' > '.join(entry.category.path()) if entry.category else '',
                    ] + party(entry) + [entry.payment_method or '']
                    for col, value in enumerate(values, start=1):
                        sheet.cell(row=line, column=col, value=value)
                    ExcelExportService.set_money(sheet.cell(row=line, column=len(values) + 1), entry.amount)
                    if title == "Despesas":
                        sheet.cell(row=line, column=len(values) + 2, value=STATUS_LABELS.get(entry.status, entry.status))
                ExcelExportService.auto_adjust_columns(sheet)

            return ExcelExportService.workbook_to_bytes(wb)

        except Exception as e:
            logger.error("Error exporting finance report: %s", e)
            return None

    @staticmethod
    def export_payroll(payrolls, reference_month=None):
        """Payslips of a month"""
        try:
            wb = ExcelExportService.create_workbook()
            ws = wb.active
            ws.title = "Folha de Pagamento"

            row = 1
            if reference_month:
                row = ExcelExportService.write_info_table(ws, 1, [('Referência', reference_month)]) + 1

            headers = ['Funcionário', 'Referência', 'Salário bruto', 'Benefícios', 'Descontos', 'Líquido', 'Status']
            ExcelExportService.style_header_row(ws, row, headers)
            for payroll in payrolls:
                row += 1
                ws.cell(row=row, column=1, value=payroll.employee.full_name if payroll.employee else '')
                ws.cell(row=row, column=2, value=payroll.reference_month.strftime('%m/%Y'))
                for col, value in enumerate((payroll.gross_salary, payroll.benefits,
                                             payroll.discounts, payroll.net_salary), start=3):
                    ExcelExportService.set_money(ws.cell(row=row, column=col), value)
                ws.cell(row=row, column=7, value=STATUS_LABELS.get(payroll.payment_status, payroll.payment_status))

            ExcelExportService.auto_adjust_columns(ws)
            return ExcelExportService.workbook_to_bytes(wb)

        except Exception as e:
            logger.error("Error exporting payroll: %s", e)
            return None

    @staticmethod
    def export_academic_summary(student, summary):
        """Report card sheet for one student"""
        try:
            wb = ExcelExportService.create_workbook()
            ws = wb.active
            ws.title = "Boletim"

            row = ExcelExportService.write_info_table(ws, 1, [
                ('Aluno', student.full_name),
                ('Matrícula', student.registration_code),
                ('Turma', student.school_class.name if student.school_class else ''),
            ]) + 1

            periods = []
            for subject in summary['subjects']:
                for period in subject['periods']:
                    if period not in periods:
                        periods.append(period)

            ExcelExportService.style_header_row(ws, row, ['Disciplina'] + periods + ['Média', 'Situação'])
            for subject in summary['subjects']:
                row += 1
                ws.cell(row=row, column=1, value=subject['subject'])
                for col, period in enumerate(periods, start=2):
                    ws.cell(row=row, column=col, value=subject['periods'].get(period))
                ws.cell(row=row, column=len(periods) + 2, value=subject['average'])
                ws.cell(row=row, column=len(periods) + 3,
                        value='Aprovado' if subject['status'] == 'approved' else 'Reprovado')

            row += 2
            ws.cell(row=row, column=1, value="Média geral").font = Font(bold=True)
            ws.cell(row=row, column=2, value=summary['overall_average'])

            ExcelExportService.auto_adjust_columns(ws)
            return ExcelExportService.workbook_to_bytes(wb)

        except Exception as e:
            logger.error("Error exporting academic summary: %s", e)
            return None

    @staticmethod
    def workbook_to_bytes(workbook):
        """Convert workbook to bytes for download"""
        output = BytesIO()
        workbook.save(output)
        output.seek(0)
        return output.getvalue()
