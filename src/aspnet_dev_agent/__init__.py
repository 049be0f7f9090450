"""aspnet-dev-agent: C#/ASP.NET skills for coding agents plus the local service workflow they describe."""

__version__ = "0.1.0"
