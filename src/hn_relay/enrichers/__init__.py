"""메타데이터 enrichment 모듈."""

from hn_relay.enrichers.og_image import OgImageResolver, extract_og_image_url

__all__ = ["OgImageResolver", "extract_og_image_url"]
