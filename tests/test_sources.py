from unittest import mock

import pytest
import requests

from ipsetctl.errors import SourceError
from ipsetctl.sources import fetch_entries, parse_entries


def test_parse_entries_skips_comments_and_blanks():
    text = '# drop list\n; Last-Modified: Mon, 19 Oct 2026\n\n10.0.0.0/8 ; SBL1\n  192.168.0.1  \n#10.1.1.1\n'
    assert parse_entries(text) == ['10.0.0.0/8', '192.168.0.1']


def test_fetch_from_file(tmp_path):
    path = tmp_path / 'entries.txt'
    path.write_text('1.1.1.1\n2.2.2.2\n', encoding='utf-8')
    assert fetch_entries(str(path)) == ['1.1.1.1', '2.2.2.2']


def test_fetch_missing_file(tmp_path):
    with pytest.raises(SourceError, match='unable to read'):
        fetch_entries(str(tmp_path / 'nope.txt'))


def test_fetch_from_url():
    response = mock.Mock(text='1.1.1.0/24\n')
    with mock.patch('ipsetctl.sources.requests.get', return_value=response) as get:
        assert fetch_entries('https://example.net/list.txt') == ['1.1.1.0/24']
    get.assert_called_once_with('https://example.net/list.txt', timeout=30)
    response.raise_for_status.assert_called_once_with()


def test_fetch_url_http_error():
    response = mock.Mock()
    response.raise_for_status.side_effect = requests.exceptions.HTTPError('404 Client Error')
    with mock.patch('ipsetctl.sources.requests.get', return_value=response):
        with pytest.raises(SourceError, match='404'):
            fetch_entries('http://example.net/missing.txt')
