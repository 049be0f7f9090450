from aspnet_dev_agent.httpfile.parser import HttpFile, HttpRequest, parse_http_file
from aspnet_dev_agent.httpfile.writer import render_http_file, sample_from_schema

__all__ = ["HttpFile", "HttpRequest", "parse_http_file", "render_http_file", "sample_from_schema"]
