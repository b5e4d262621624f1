"""
Tests for CSV import and export of fillups.
"""

from datetime import date

import pytest

from justfuel.exceptions import CSVImportError
from justfuel.utils.csv_importer import FillupCSVImporter
from tests.factories import FillupFactory


class TestParseCSV:
    """Tests for FillupCSVImporter.parse_csv"""

    def test_basic_parse(self):
        content = (
            "date,fuel_amount,total_price,odometer\n"
            "2025-01-01,40.5,243.00,1000\n"
            "2025-02-01,38.2,229.20,1500\n"
        )
        rows, stats = FillupCSVImporter.parse_csv(content)

        assert len(rows) == 2
        assert rows[0] == {
            'date': '2025-01-01',
            'fuel_amount': '40.5',
            'total_price': '243.00',
            'odometer': '1000',
            'distance': None,
        }
        assert stats['parsed_rows'] == 2
        assert stats['line_numbers'] == [2, 3]

    def test_semicolon_with_decimal_comma(self):
        content = (
            "Data;Ilosc;Cena;Przebieg\n"
            "15.01.2025;40,5;243,00;1000\n"
        )
        rows, stats = FillupCSVImporter.parse_csv(content)

        assert rows[0]['date'] == '15.01.2025'
        assert rows[0]['fuel_amount'] == '40,5'
        assert rows[0]['odometer'] == '1000'
        assert stats['columns_found'] == ['date', 'fuel_amount', 'total_price', 'odometer']

    def test_tab_delimited(self):
        content = "date\tliters\ttotal\tdistance\n2025-01-01\t30\t180\t400\n"
        rows, _ = FillupCSVImporter.parse_csv(content)

        assert rows[0]['fuel_amount'] == '30'
        assert rows[0]['distance'] == '400'

    def test_byte_order_mark(self):
        content = "\ufeffdate,fuel_amount,total_price,odometer\n2025-01-01,40,240,1000\n"
        rows, _ = FillupCSVImporter.parse_csv(content)

        assert rows[0]['date'] == '2025-01-01'

    def test_case_insensitive_aliases(self):
        content = "Fillup Date,Fuel Amount (L),Total Cost,Odometer (km)\n2025-01-01,40,240,1000\n"
        rows, _ = FillupCSVImporter.parse_csv(content)

        assert rows[0]['total_price'] == '240'

    def test_blank_rows_skipped(self):
        content = (
            "date,fuel_amount,total_price,odometer\n"
            "2025-01-01,40,240,1000\n"
            ",,,\n"
            "2025-02-01,40,240,1500\n"
        )
        rows, stats = FillupCSVImporter.parse_csv(content)

        assert len(rows) == 2
        assert stats['skipped_rows'] == 1
        assert stats['line_numbers'] == [2, 4]

    def test_values_are_not_validated(self):
        content = "date,fuel_amount,total_price,odometer\nnot a date,abc,-1,1.5\n"
        rows, _ = FillupCSVImporter.parse_csv(content)

        assert rows[0]['fuel_amount'] == 'abc'

    def test_dash_is_empty(self):
        content = "date,fuel_amount,total_price,odometer,distance\n2025-01-01,40,240,1000,-\n"
        rows, _ = FillupCSVImporter.parse_csv(content)

        assert rows[0]['distance'] is None

    def test_other_mileage_column_ignored(self):
        content = "date,fuel_amount,total_price,odometer,distance\n2025-01-01,40,240,1000,500\n"
        rows, stats = FillupCSVImporter.parse_csv(content, mileage_field='odometer')

        assert rows[0]['distance'] is None
        assert stats['ignored_columns'] == ['distance']

    def test_unknown_columns_reported(self):
        content = "date,fuel_amount,total_price,odometer,station\n2025-01-01,40,240,1000,Shell\n"
        _, stats = FillupCSVImporter.parse_csv(content)

        assert stats['ignored_columns'] == ['station']


class TestParseCSVErrors:
    """Structural problems raise CSVImportError"""

    @pytest.mark.parametrize("content", ["", "   \n  "])
    def test_empty(self, content):
        with pytest.raises(CSVImportError, match="empty") as exc_info:
            FillupCSVImporter.parse_csv(content, filename="fillups.csv")

        assert exc_info.value.details["code"] == "E102"

    def test_missing_required_column(self):
        content = "date,fuel_amount,odometer\n2025-01-01,40,1000\n"

        with pytest.raises(CSVImportError) as exc_info:
            FillupCSVImporter.parse_csv(content)

        assert "total_price" in exc_info.value.message
        assert exc_info.value.row_number == 1
        assert exc_info.value.details["code"] == "E101"

    def test_unreadable_row(self):
        content = "date,fuel_amount,total_price,odometer\n" + "x" * 200000 + ",40,240,1000\n"

        with pytest.raises(CSVImportError, match="Could not read CSV") as exc_info:
            FillupCSVImporter.parse_csv(content, filename="fillups.csv")

        assert exc_info.value.row_number == 2
        assert exc_info.value.details["code"] == "E102"
        assert exc_info.value.filename == "fillups.csv"

    def test_missing_mileage_column(self):
        content = "date,fuel_amount,total_price\n2025-01-01,40,240\n"

        with pytest.raises(CSVImportError, match="odometer"):
            FillupCSVImporter.parse_csv(content)

    def test_missing_preferred_mileage_column(self):
        content = "date,fuel_amount,total_price,odometer\n2025-01-01,40,240,1000\n"

        with pytest.raises(CSVImportError, match="distance"):
            FillupCSVImporter.parse_csv(content, mileage_field='distance')


class TestGenerateCSV:
    """Tests for FillupCSVImporter.generate_csv"""

    def test_export(self):
        fillups = [
            FillupFactory.build(date=date(2025, 1, 5), odometer=1000),
            FillupFactory.build(
                date=date(2025, 2, 5), odometer=1500,
                distance_traveled=500.0, fuel_consumption=8.0,
            ),
        ]
        lines = FillupCSVImporter.generate_csv(fillups).splitlines()

        assert lines == [
            'date,fuel_amount,total_price,odometer,distance,price_per_liter,fuel_consumption',
            '05.01.2025,40.0,240.0,1000,,6.0,',
            '05.02.2025,40.0,240.0,1500,500.0,6.0,8.0',
        ]

    def test_export_can_be_parsed_again(self):
        fillups = FillupFactory.history([1000, 1500])
        content = FillupCSVImporter.generate_csv(fillups)

        rows, _ = FillupCSVImporter.parse_csv(content, mileage_field='odometer')

        assert [r['date'] for r in rows] == ['01.01.2025', '01.02.2025']
        assert [r['odometer'] for r in rows] == ['1000', '1500']

    def test_empty_export(self):
        assert FillupCSVImporter.generate_csv([]).splitlines() == [
            'date,fuel_amount,total_price,odometer,distance,price_per_liter,fuel_consumption'
        ]
