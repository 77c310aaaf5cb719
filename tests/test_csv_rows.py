from listings_hub.services.csv_rows import decode_csv_body, parse_csv_export


def test_parse_keeps_header_order_and_drops_blank_rows():
    text = (
        "MLS #,Address,List Price,Status\n"
        '1929100,"305 Theresa St, Watertown, WI 53094","$324,900",Active\n'
        ",,,\n"
        "1934327,228 Fremont St,279900,\n"
    )
    export = parse_csv_export(text)

    assert export.headers == ["MLS #", "Address", "List Price", "Status"]
    assert len(export.rows) == 2
    assert export.rows[0]["Address"] == "305 Theresa St, Watertown, WI 53094"
    assert export.rows[1]["Status"] == ""


def test_extra_cells_are_ignored():
    export = parse_csv_export("mls,address\nA-1,12 Main St,overflow\n")
    assert export.rows == [{"mls": "A-1", "address": "12 Main St"}]


def test_decode_strips_bom():
    assert decode_csv_body("\ufeffmls\nA-1\n".encode("utf-8")) == "mls\nA-1\n"
