"""Crawler detection from the User-Agent header."""

from typing import Optional


# Lower-case substrings of crawler and link-preview user agents
BOT_USER_AGENTS = (
    "googlebot",
    "bingbot",
    "yandexbot",
    "duckduckbot",
    "slurp",
    "baiduspider",
    "facebookexternalhit",
    "twitterbot",
    "rogerbot",
    "linkedinbot",
    "embedly",
    "quora link preview",
    "showyoubot",
    "outbrain",
    "pinterest",
    "slackbot",
    "vkshare",
    "w3c_validator",
    "redditbot",
    "applebot",
    "whatsapp",
    "flipboard",
    "tumblr",
    "bitlybot",
    "skypeuripreview",
    "nuzzel",
    "discordbot",
    "qwantify",
    "pinterestbot",
    "bitrix link preview",
    "xing-contenttabreceiver",
    "chrome-lighthouse",
    "telegrambot",
)


def is_bot(user_agent: Optional[str]) -> bool:
    """
    Decide whether a request should receive pre-rendered HTML

    Unknown or empty agents are treated as browsers so they get the
    normal single-page app.
    """
    if not user_agent:
        return False

    ua = user_agent.lower()
    return any(signature in ua for signature in BOT_USER_AGENTS)
