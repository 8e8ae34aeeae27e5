from app.services.document_service import content_disposition, get_file_extension, get_mime_type


class TestFileHelpers:
    def test_extension(self):
        assert get_file_extension("Orders.XLSX") == "xlsx"
        assert get_file_extension("no_extension") == ""

    def test_mime_type(self):
        assert get_mime_type("bulk_invoices_2026-10-19.zip") == "application/zip"
        assert get_mime_type("enriched_data.csv") == "text/csv"
        assert get_mime_type("mystery.bin") == "application/octet-stream"


class TestContentDisposition:
    def test_ascii_name(self):
        assert content_disposition("enriched_data.csv") == (
            "attachment; filename=\"enriched_data.csv\"; filename*=UTF-8''enriched_data.csv"
        )

    def test_non_ascii_name_is_latin1_safe(self):
        value = content_disposition("订单-1_invoice.pdf", "inline")

        value.encode("latin-1")
        assert value.startswith('inline; filename="-1_invoice.pdf"')
        assert value.endswith("filename*=UTF-8''%E8%AE%A2%E5%8D%95-1_invoice.pdf")

    def test_quotes_replaced_in_fallback(self):
        value = content_disposition('say "hi".pdf')
        assert 'filename="say _hi_.pdf"' in value
        assert "filename*=UTF-8''say%20%22hi%22.pdf" in value

    def test_empty_fallback(self):
        assert content_disposition("订单").startswith('attachment; filename="download"')
