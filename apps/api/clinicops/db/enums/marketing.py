"""Marketing enums."""

from enum import Enum


class MarketingChannel(str, Enum):
    GOOGLE_ADS = "google_ads"
    META_ADS = "meta_ads"
    TIKTOK_ADS = "tiktok_ads"
    LINKEDIN_ADS = "linkedin_ads"
    EMAIL = "email"
    ORGANIC = "organic"
    REFERRAL = "referral"
    OTHER = "other"
