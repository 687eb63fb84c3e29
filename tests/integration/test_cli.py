import io
import logging
import httpx
import pytest
import sys
from unittest.mock import ANY, patch
from archive_urls import cli
from archive_urls.exceptions import InputReadError
from archive_urls.schemas import ArchivedURL

class ClosedPipe:
    """stdout whose reader has gone away"""

    def write(self, data):
        raise BrokenPipeError(32, "Broken pipe")

    def flush(self):
        pass

    def fileno(self):
        return 99

class ClosedPipeWithoutDescriptor(ClosedPipe):
    def fileno(self):
        raise io.UnsupportedOperation("fileno")

def broken_stream():
    yield "a.com\n"
    raise OSError("device gone")

class TestArgumentParsing:
    """Flag parsing and option building"""

    def test_defaults(self):
        args = cli.build_parser().parse_args(["example.com"])
        options = cli.build_options(args)
        assert args.domain == "example.com"
        assert options.days == 0
        assert options.exclude_subdomains is False
        assert options.get_versions is False
        assert options.show_dates is False

    def test_single_dash_flags(self):
        args = cli.build_parser().parse_args(["-days", "7", "-no-subs", "-dates", "example.com"])
        options = cli.build_options(args)
        assert options.days == 7
        assert options.exclude_subdomains is True
        assert options.show_dates is True

    def test_double_dash_flags(self):
        args = cli.build_parser().parse_args(["--days=3", "--get-versions"])
        options = cli.build_options(args)
        assert args.domain is None
        assert options.days == 3
        assert options.get_versions is True

    @pytest.mark.parametrize("value", ["-1", "seven"])
    def test_invalid_days(self, value):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["-days", value, "example.com"])

class TestInput:
    """Reading domains from stdin"""

    def test_blank_lines_and_whitespace(self):
        assert cli.read_lines(io.StringIO("a.com\n\n  b.com  \n")) == ["a.com", "b.com"]

    def test_read_failure_keeps_lines_read(self):
        with pytest.raises(InputReadError) as exc_info:
            cli.read_lines(broken_stream())
        assert exc_info.value.lines == ["a.com"]

    def test_positional_argument_wins_over_stdin(self):
        args = cli.build_parser().parse_args(["example.com"])
        assert cli.collect_inputs(args, io.StringIO("other.com\n")) == ["example.com"]

    def test_read_failure_logged(self, caplog):
        args = cli.build_parser().parse_args([])
        with caplog.at_level(logging.ERROR):
            inputs = cli.collect_inputs(args, broken_stream())
        assert inputs == ["a.com"]
        assert "failed to read input: device gone" in caplog.text

class TestFormatting:
    """Output line formatting"""

    def test_plain(self):
        record = ArchivedURL(date="20200101000000", url="http://example.com/")
        assert cli.format_record(record, show_dates=False) == "http://example.com/"

    def test_with_dates(self):
        record = ArchivedURL(date="20200101000000", url="http://example.com/")
        assert cli.format_record(record, show_dates=True) == "2020-01-01T00:00:00Z http://example.com/"

    def test_unparseable_date_falls_back_to_url(self):
        record = ArchivedURL(date="bogus", url="http://example.com/")
        assert cli.format_record(record, show_dates=True) == "http://example.com/"

class TestMain:
    """Whole program runs against a fake index"""

    def run_main(self, mock_client, handler, argv, stdin=None):
        with patch(
            "archive_urls.services.orchestrator.build_client",
            side_effect=lambda: mock_client(handler),
        ):
            return cli.main(argv, stdin=stdin or io.StringIO(""))

    def test_domain_argument(self, mock_client, cdx_header, cdx_row, capsys):
        rows = [
            cdx_header,
            cdx_row("20200101000000", "http://example.com/"),
            cdx_row("20200102000000", "http://example.com/about"),
            cdx_row("20200103000000", "http://example.com/"),
        ]
        code = self.run_main(mock_client, lambda request: httpx.Response(200, json=rows), ["example.com"])

        assert code == 0
        assert capsys.readouterr().out.splitlines() == ["http://example.com/", "http://example.com/about"]

    def test_no_subs_and_dates(self, mock_client, cdx_header, cdx_row, capsys):
        patterns = []

        def handler(request):
            patterns.append(request.url.params["url"])
            return httpx.Response(200, json=[
                cdx_header,
                cdx_row("20200101000000", "http://example.com/"),
                cdx_row("20200101000000", "http://www.example.com/"),
            ])

        self.run_main(mock_client, handler, ["-no-subs", "-dates", "example.com"])

        assert patterns == ["example.com/*"]
        assert capsys.readouterr().out.splitlines() == ["2020-01-01T00:00:00Z http://example.com/"]

    def test_domains_from_stdin(self, mock_client, cdx_header, cdx_row, capsys):
        def handler(request):
            domain = request.url.params["url"][2:-2]
            if domain == "down.com":
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json=[cdx_header, cdx_row("20200101000000", f"http://{domain}/")])

        code = self.run_main(mock_client, handler, [], stdin=io.StringIO("a.com\ndown.com\nb.com\n"))

        assert code == 0
        assert capsys.readouterr().out.splitlines() == ["http://a.com/", "http://b.com/"]

    def test_get_versions(self, mock_client, cdx_header, cdx_row, capsys):
        def handler(request):
            url = request.url.params["url"]
            if url == "http://gone.test/":
                return httpx.Response(404)
            return httpx.Response(200, json=[cdx_header, cdx_row("20210101000000", url)])

        code = self.run_main(
            mock_client,
            handler,
            ["-get-versions"],
            stdin=io.StringIO("http://gone.test/\nhttp://example.com/\n"),
        )

        assert code == 0
        assert capsys.readouterr().out.splitlines() == [
            "http://web.archive.org/web/20210101000000/http://example.com/"
        ]

    def test_days_far_in_the_past(self, mock_client, cdx_header, cdx_row, capsys):
        """Test a window longer than the calendar starts at year 1 instead of crashing"""
        params = []

        def handler(request):
            params.append(dict(request.url.params))
            return httpx.Response(200, json=[cdx_header, cdx_row("20200101000000", "http://example.com/")])

        code = self.run_main(mock_client, handler, ["-days", "1000000", "example.com"])

        assert code == 0
        assert params[0]["from"] == "00010101"
        assert capsys.readouterr().out.splitlines() == ["http://example.com/"]

    def test_closed_output_pipe(self, mock_client, cdx_header, cdx_row, monkeypatch):
        """Test the reader closing stdout ends the run quietly"""
        rows = [cdx_header] + [cdx_row("20200101000000", f"http://example.com/{i}") for i in range(20)]
        monkeypatch.setattr(sys, "stdout", ClosedPipe())

        with patch("archive_urls.cli.os.dup2") as mock_dup2:
            code = self.run_main(mock_client, lambda request: httpx.Response(200, json=rows), ["example.com"])

        assert code == 141
        mock_dup2.assert_called_once_with(ANY, 99)

    def test_closed_output_without_file_descriptor(self, mock_client, cdx_header, cdx_row, monkeypatch):
        rows = [cdx_header, cdx_row("20200101000000", "http://example.com/")]
        monkeypatch.setattr(sys, "stdout", ClosedPipeWithoutDescriptor())

        with patch("archive_urls.cli.os.dup2") as mock_dup2:
            code = self.run_main(mock_client, lambda request: httpx.Response(200, json=rows), ["example.com"])

        assert code == 141
        mock_dup2.assert_not_called()

    def test_undecodable_stdin_line(self, mock_client, cdx_header, cdx_row, capsys, monkeypatch):
        """Test one bad byte on stdin does not drop the domains after it"""
        monkeypatch.setattr(
            sys, "stdin", io.TextIOWrapper(io.BytesIO(b"a.com\n\xff\xfe.com\nb.com\n"), encoding="utf-8")
        )
        patterns = []

        def handler(request):
            pattern = request.url.params["url"]
            patterns.append(pattern)
            return httpx.Response(200, json=[cdx_header, cdx_row("20200101000000", f"http://{pattern[:-2]}/")])

        with patch(
            "archive_urls.services.orchestrator.build_client",
            side_effect=lambda: mock_client(handler),
        ):
            code = cli.main(["-no-subs"])

        assert code == 0
        assert patterns == ["a.com/*", "\ufffd\ufffd.com/*", "b.com/*"]
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "http://a.com/"
        assert out[-1] == "http://b.com/"
