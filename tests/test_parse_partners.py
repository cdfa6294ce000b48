from parser.parse_partners import extract_partners

LISTING = """
<html><body>
<table class="body">
  <tr><th>Name</th><th>Phone</th></tr>
  <tr>
    <td><a class="body" href="/partners/17"> Doe, Jane </a></td>
    <td> 555-1111 </td>
  </tr>
  <tr>
    <td><a class="body" href="https://other.example.com/p/2">John Roe</a></td>
    <td></td>
  </tr>
  <tr><td>spacer row without anchor</td><td>x</td></tr>
  <tr><td><a class="body">Solo Cell</a></td></tr>
</table>
<table><tr><td><a class="body">Not In Listing</a></td><td>1</td></tr></table>
</body></html>
"""


def test_extracts_rows_in_page_order():
    partners = extract_partners(LISTING, base_url="https://directory.example.com/list")

    assert [p["raw_name"] for p in partners] == ["Doe, Jane", "John Roe", "Solo Cell"]


def test_phone_and_profile_urls():
    partners = extract_partners(LISTING, base_url="https://directory.example.com/list")

    assert partners[0]["phone_number"] == "555-1111"
    assert partners[0]["profile_url"] == "https://directory.example.com/partners/17"
    assert partners[1]["phone_number"] == ""
    assert partners[1]["profile_url"] == "https://other.example.com/p/2"
    assert partners[2] == {"raw_name": "Solo Cell", "phone_number": "", "profile_url": ""}


def test_page_without_listing_table_yields_nothing():
    assert extract_partners("<html><body><p>Maintenance</p></body></html>") == []
