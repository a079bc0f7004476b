"""
Selector configuration for DOM extraction and image harvesting.

Selector groups are tried in declared order and the first non-empty match
wins. Entries of the form ``meta[og:title]`` read the ``content`` attribute of
``meta[property=og:title]`` / ``meta[name=og:title]``; every other selector
reads element text.
"""

# Scalar field selector groups, highest priority first
FIELD_SELECTORS = {
    "title": [
        "h1.title",
        "h1.property-title",
        ".listing-title",
        "h1",
        "meta[og:title]",
        "meta[twitter:title]",
        "title",
    ],
    "description": [
        ".property-description",
        ".description",
        "#description",
        "[itemprop='description']",
        "meta[og:description]",
        "meta[twitter:description]",
        "meta[name=description]",
    ],
    "price": [
        ".price",
        ".property-price",
        ".listing-price",
        "#price",
        "[itemprop='price']",
        "[class*='price']",
        "meta[og:price:amount]",
        "meta[product:price:amount]",
    ],
    "location": [
        ".location",
        ".property-location",
        ".address",
        "[itemprop='address']",
        "[class*='location']",
        "[class*='address']",
        "meta[og:locality]",
        "meta[geo.placename]",
    ],
    "bedrooms": [
        ".bedrooms",
        "[itemprop='numberOfRooms']",
        "[class*='bedroom']",
        "[class*='habitacion']",
    ],
    "bathrooms": [
        ".bathrooms",
        "[itemprop='numberOfBathroomsTotal']",
        "[class*='bathroom']",
        "[class*='bano']",
    ],
    "area": [
        ".area",
        "[itemprop='floorSize']",
        "[class*='superficie']",
        "[class*='area']",
    ],
}

# Containers whose <li> items are read as listing features
FEATURE_CONTAINERS = ["main", ".content", "#content", ".details", ".amenities", ".features"]

# Site-specific selectors applied before the generic groups
SITE_FIELD_SELECTORS = {
    "encuentra24.com": {
        "source": "Encuentra24",
        "title": ["h1"],
        "price": [".price", "[class*='price']"],
        "location": [".location", "[class*='address']"],
        "bedrooms": [".info-details .bedrooms"],
        "bathrooms": [".info-details .bathrooms"],
        "area": [".info-details .area"],
        "description": [".description-container", ".description"],
        "features": [".amenities li", ".features li"],
    },
}

# JSON-LD property names consulted per field
JSONLD_PROPERTIES = {
    "title": ["name", "headline"],
    "description": ["description"],
    "price": ["price"],
    "location": ["address"],
    "bedrooms": ["numberOfRooms", "numberOfBedrooms"],
    "bathrooms": ["numberOfBathroomsTotal"],
    "area": ["floorSize"],
}

# Gallery selectors per known host; everything else uses GENERIC_GALLERY_SELECTORS
GALLERY_SELECTORS = {
    "encuentra24.com": [
        ".gallery-image",
        ".carousel-item img",
        ".slick-slide img",
        "[class*='gallery'] img",
    ],
    "jamesedition.com": [
        ".ListingGallery img",
        "[class*='gallery'] img",
        "[class*='slider'] img",
        "picture img",
    ],
    "compreoalquile.com": [
        "#carousel-property img",
        ".carousel-inner img",
        "[class*='gallery'] img",
        "[class*='photo'] img",
    ],
    "mlsacobir.com": [
        ".property-gallery img",
        "#gallery img",
        ".fotorama img",
        "[class*='carousel'] img",
    ],
}

GENERIC_GALLERY_SELECTORS = [
    "[class*='gallery'] img",
    "[id*='gallery'] img",
    "[class*='slider'] img",
    "[id*='slider'] img",
    "[class*='carousel'] img",
    "[id*='carousel'] img",
    "[class*='photo'] img",
    "[id*='photo'] img",
    "main img",
    "article img",
]

# Image source attributes, in priority order (lazy-load fallbacks after src)
IMAGE_SOURCE_ATTRIBUTES = ["src", "data-src", "data-original", "data-lazy", "data-image"]

IMAGE_DENYLIST = [
    "logo", "icon", "avatar", "badge", "button", "banner", "ad",
    "advertisement", "sponsor", "facebook", "twitter", "instagram",
    "whatsapp", "pixel", "tracking", "analytics", "1x1", "spacer", "blank",
    "favicon", "sprite",
]

IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".webp", ".gif"]

IMAGE_CDN_FRAGMENTS = ["cloudinary", "imgix", "cloudfront", "akamai"]

# Words that mark an <li> as navigation, contact or legal boilerplate
INVALID_FEATURE_KEYWORDS = [
    "contacto", "contact", "agente", "agent", "whatsapp", "email",
    "phone", "cookie", "privacy", "terms", "política", "aviso",
    "copyright", "reserved", "rights", "©", "®", "™",
]

NAVIGATION_WORDS = ["home", "about", "contact", "login", "inicio"]
