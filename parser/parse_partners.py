from urllib.parse import urljoin

from bs4 import BeautifulSoup


def extract_partners(html, base_url=''):
    """
    Pull partner rows out of the directory listing.

    The listing is a ``table.body``; in every row the first cell holds an
    ``a.body`` anchor with the partner's name (and a link to their
    profile) and the second cell holds the phone number. Rows without the
    anchor are headers or spacers and are ignored.

    Returns:
        list of dicts with ``raw_name``, ``phone_number`` and
        ``profile_url``, in page order. Names are not normalized here.
    """
    soup = BeautifulSoup(html, 'html.parser')
    partners = []

    for table in soup.select('table.body'):
        for row in table.find_all('tr'):
            cells = row.find_all('td')
            if not cells:
                continue

            anchor = cells[0].find('a', class_='body')
            if anchor is None:
                continue

            raw_name = anchor.get_text(strip=True)
            if not raw_name:
                continue

            phone_number = cells[1].get_text(strip=True) if len(cells) > 1 else ''

            href = anchor.get('href') or ''
            profile_url = urljoin(base_url, href) if href else ''

            partners.append({
                'raw_name': raw_name,
                'phone_number': phone_number,
                'profile_url': profile_url,
            })

    return partners
