"""
Store Asset Extractor

Pulls app icons and screenshots out of app-listing pages and renders them
into store-ready PNG sizes.
"""

__version__ = "0.1.0"
__author__ = "Store Asset Extractor Team"
__description__ = "Extract and resize app store icons and screenshots from listing pages"
__license__ = "MIT"

# Package level constants
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_APP_NAME = "app_assets"
