"""
Extraction package for PropertyScrape

This package turns listing HTML into PropertyRecord fields, harvests listing
photos and removes contact details from free text.
"""

from extraction.dom_extractor import DOMExtractor
from extraction.image_harvester import ImageHarvester, is_valid_image_url, merge_images
from extraction.privacy_scrubber import scrub_private_info, scrub_record

__all__ = [
    'DOMExtractor',
    'ImageHarvester',
    'is_valid_image_url',
    'merge_images',
    'scrub_private_info',
    'scrub_record',
]
