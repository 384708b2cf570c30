from .fetcher import WebsiteContextFetcher, html_to_text, looks_like_code, accept_excerpt

__all__ = ["WebsiteContextFetcher", "html_to_text", "looks_like_code", "accept_excerpt"]
