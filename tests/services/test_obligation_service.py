from datetime import date, datetime
from io import BytesIO

import pytest
from openpyxl import Workbook

from reforma.errors import RowValidationError
from reforma.models.obligation import CandidateFile, ObligationRecord, ParseIssue
from reforma.services.obligation_service import (
    ObligationService,
    amount_keys,
    assign_obligations,
    file_matches,
    load_workbook,
    match_files_to_obligations,
    parse_amount,
    parse_due_date,
    parse_obligations,
    parse_sheet,
    split_file_pools,
    supplier_key,
)

HEADER = [None, "FORNECEDOR", "NF", "VENCIMENTO", "VALOR", "CATEGORIA", "STATUS", "FORMA"]


def _sheet(*data_rows):
    return [
        [None, "Nº", "2024/031"],
        HEADER,
        *data_rows,
    ]


def _record(supplier: str = "ACME", amount: int = 123456, **kwargs) -> ObligationRecord:
    return ObligationRecord(sheet_name="S1", supplier=supplier, amount=amount, **kwargs)


class TestParseAmount:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1.234,56", 123456),
            ("R$ 1.234,56", 123456),
            ("850", 85000),
            ("12,5", 1250),
            (1234.56, 123456),
            (200, 20000),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", ["abc", "", "0", "-", 0, -5, True, None])
    def test_invalid(self, value):
        with pytest.raises(RowValidationError):
            parse_amount(value)


class TestParseDueDate:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("15/03/2024", "2024-03-15"),
            ("5/3/24", "2024-03-05"),
            ("2024-03-15T00:00:00", "2024-03-15"),
            (datetime(2024, 3, 15, 10, 30), "2024-03-15"),
            (date(2024, 3, 15), "2024-03-15"),
        ],
    )
    def test_known_shapes(self, value, expected):
        assert parse_due_date(value) == expected

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "",
            "amanhã",
            "2024-03-15",
            45000,
            "1/2",
            "abc/def/ghi",
            "15/03/2024 10:00",
            "32/13/2024",
            "29/02/2023",
            "15/03/202",
            "2024-13-45T00:00:00",
            "xxxx-03-15T00:00:00",
        ],
    )
    def test_unknown_shapes(self, value):
        assert parse_due_date(value) is None


class TestParseSheet:
    def test_reads_example_row(self):
        rows = _sheet([None, "ACME", "INV-1", "15/03/2024", "1.234,56", "Labor", None, "PIX"])

        records = parse_sheet("Semana 1", rows)

        assert len(records) == 1
        r = records[0]
        assert r.protocol_number == "2024/031"
        assert r.sheet_name == "Semana 1"
        assert r.supplier == "ACME"
        assert r.invoice_number == "INV-1"
        assert r.due_date == "2024-03-15"
        assert r.amount == 123456
        assert r.category == "Labor"
        assert r.status == "A VENCER"
        assert r.payment_method == "PIX"

    def test_skips_total_and_empty_rows(self):
        rows = _sheet(
            [None, "ACME", None, None, "100,00"],
            [None, "", None, None, "50,00"],
            [None, "BETA", None, None, None],
            [None, "TOTAL GERAL", None, None, "150,00"],
            [],
            None,
        )
        records = parse_sheet("S1", rows)
        assert [r.supplier for r in records] == ["ACME"]

    def test_rows_before_header_ignored(self):
        rows = [[None, "ACME", None, None, "100,00"], HEADER, [None, "BETA", None, None, "1,00"]]
        records = parse_sheet("S1", rows)
        assert [r.supplier for r in records] == ["BETA"]
        assert records[0].protocol_number is None

    def test_no_header_yields_nothing(self):
        assert parse_sheet("S1", [[None, "ACME", None, None, "100,00"]]) == []

    def test_collects_issues(self):
        issues: list[ParseIssue] = []
        rows = _sheet(
            [None, "ACME", None, None, "abc"],
            [None, "BETA", None, "amanhã", "10,00"],
        )

        records = parse_sheet("S1", rows, issues)

        assert [r.supplier for r in records] == ["BETA"]
        assert records[0].due_date is None
        assert [(i.row_number, i.sheet_name) for i in issues] == [(3, "S1"), (4, "S1")]
        assert "due date" in issues[1].reason

    def test_status_upper_cased(self):
        rows = _sheet([None, "ACME", None, None, "10,00", None, "pago"])
        assert parse_sheet("S1", rows)[0].status == "PAGO"

    def test_short_rows(self):
        rows = _sheet([None, "ACME", "NF1", "01/02/2025", 99.9])
        r = parse_sheet("S1", rows)[0]
        assert r.amount == 9990
        assert r.category is None
        assert r.payment_method is None


class TestParseObligations:
    def test_all_sheets_in_order(self):
        workbook = {
            "A": _sheet([None, "ACME", None, None, "1,00"]),
            "B": _sheet([None, "BETA", None, None, "2,00"], [None, "GAMA", None, None, "3,00"]),
        }
        records = parse_obligations(workbook)
        assert [(r.sheet_name, r.supplier) for r in records] == [("A", "ACME"), ("B", "BETA"), ("B", "GAMA")]

    def test_empty_workbook(self):
        assert parse_obligations({}) == []


class TestLoadWorkbook:
    def _xlsx(self) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = "Semana 1"
        for row in _sheet(
            [None, "ACME", "INV-1", datetime(2024, 3, 15), 1234.56, "Labor", None, "PIX"],
        ):
            ws.append(row)
        second = wb.create_sheet("Semana 2")
        second.append(["vazio"])
        buf = BytesIO()
        wb.save(buf)
        return buf.getvalue()

    def test_reads_sheets_with_typed_cells(self):
        workbook = load_workbook(self._xlsx())
        assert list(workbook) == ["Semana 1", "Semana 2"]
        assert workbook["Semana 1"][2][1] == "ACME"
        assert workbook["Semana 1"][2][4] == pytest.approx(1234.56)

    def test_import_protocol(self):
        files = [CandidateFile(name="BOLETO_ACME.pdf", ref="/tmp/a"), CandidateFile(name="NF_ACME.pdf")]

        records = ObligationService().import_protocol(self._xlsx(), files)

        assert len(records) == 1
        assert records[0].due_date == "2024-03-15"
        assert records[0].amount == 123456
        assert records[0].slip_file.ref == "/tmp/a"
        assert records[0].invoice_file.name == "NF_ACME.pdf"


class TestMatchingKeys:
    def test_supplier_key(self):
        assert supplier_key("Acme  Ltda") == "ACMELT"
        assert supplier_key("Zé") == "ZÉ"

    @pytest.mark.parametrize(
        "centavos,expected",
        [
            (123456, ("1234_56", "1235")),
            (123450, ("1234_5", "1235")),
            (123449, ("1234_49", "1234")),
            (100000, ("1000", "1000")),
            (5000, ("50", "0050")),
        ],
    )
    def test_amount_keys(self, centavos, expected):
        assert amount_keys(centavos) == expected

    def test_split_file_pools(self):
        files = [
            CandidateFile(name="boleto_acme.pdf"),
            CandidateFile(name="NF_acme.pdf"),
            CandidateFile(name="BOLETO_NF_beta.pdf"),
            CandidateFile(name="nota_gama.pdf"),
            CandidateFile(name="foto.jpg"),
        ]
        slips, invoices = split_file_pools(files)
        assert [f.name for f in slips] == ["boleto_acme.pdf"]
        assert [f.name for f in invoices] == ["NF_acme.pdf", "BOLETO_NF_beta.pdf", "nota_gama.pdf"]

    def test_file_matches_by_supplier_or_amount(self):
        record = _record("Acme Ltda", 123456)
        assert file_matches(record, CandidateFile(name="BOLETO_acmeltda.pdf"))
        assert file_matches(record, CandidateFile(name="BOLETO_1234_56.pdf"))
        assert file_matches(record, CandidateFile(name="BOLETO 1235.pdf"))
        assert not file_matches(record, CandidateFile(name="BOLETO_outro.pdf"))


class TestMatchFilesToObligations:
    def test_attaches_first_match(self):
        obligations = [_record("ACME", 10000), _record("BETA", 20000)]
        files = [
            CandidateFile(name="BOLETO_BETA.pdf"),
            CandidateFile(name="BOLETO_ACME_1.pdf"),
            CandidateFile(name="BOLETO_ACME_2.pdf"),
            CandidateFile(name="NF_ACME.pdf"),
        ]

        result = match_files_to_obligations(obligations, files)

        assert result[0].slip_file.name == "BOLETO_ACME_1.pdf"
        assert result[0].invoice_file.name == "NF_ACME.pdf"
        assert result[1].slip_file.name == "BOLETO_BETA.pdf"
        assert result[1].invoice_file is None

    def test_inputs_untouched_and_rerun_stable(self):
        obligations = [_record("ACME", 10000)]
        files = [CandidateFile(name="BOLETO_ACME.pdf")]

        first = match_files_to_obligations(obligations, files)
        second = match_files_to_obligations(obligations, files)

        assert obligations[0].slip_file is None
        assert first == second

    def test_same_file_may_serve_several_obligations(self):
        obligations = [_record("ACME", 10000), _record("ACME", 20000)]
        result = match_files_to_obligations(obligations, [CandidateFile(name="BOLETO_ACME.pdf")])
        assert result[0].slip_file == result[1].slip_file

    def test_no_files(self):
        result = match_files_to_obligations([_record()], [])
        assert result[0].slip_file is None
        assert result[0].invoice_file is None


def test_assign_obligations():
    obligations = [_record("A"), _record("B"), _record("C")]
    result = assign_obligations(obligations, {0: "pati", 2: "pati"})
    assert [o.assigned_to for o in result] == ["pati", None, "pati"]
    assert obligations[0].assigned_to is None
