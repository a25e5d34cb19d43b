from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

# Topic buckets that let headlines and contracts match across vocabulary,
# e.g. "Powell" in a headline against "Federal Reserve" in a contract title.
SEMANTIC_CLUSTERS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "fed_monetary": (
            "federal reserve", "fed", "fomc", "interest rate", "rate hike", "rate cut",
            "monetary policy", "powell", "central bank", "quantitative easing", "qe",
            "federal funds", "basis points", "tightening", "easing", "inflation",
            "cpi", "pce", "deflation", "stagflation", "yellen", "treasury",
        ),
        "us_president": (
            "president", "white house", "oval office", "trump", "biden", "harris", "obama",
            "executive order", "veto", "administration", "cabinet", "inauguration",
            "impeach", "resign", "pardon", "presidential",
        ),
        "us_elections": (
            "election", "vote", "ballot", "primary", "candidate", "democrat", "republican",
            "senate", "senator", "congress", "house", "representative", "polling", "poll",
            "midterm", "runoff", "swing state", "electoral", "campaign", "nomination",
            "gop", "dnc", "rnc",
        ),
        "crypto": (
            "bitcoin", "btc", "ethereum", "eth", "cryptocurrency", "crypto",
            "blockchain", "defi", "nft", "solana", "sol", "xrp", "ripple",
            "coinbase", "binance", "altcoin", "stablecoin", "usdc", "usdt",
            "tether", "digital asset", "token", "crypto regulation",
        ),
        "ai_tech": (
            "artificial intelligence", "ai model", "large language model", "llm",
            "chatgpt", "gpt", "openai", "anthropic", "claude", "gemini", "grok",
            "nvidia", "semiconductor", "chip", "gpu", "microsoft", "google", "meta",
            "apple", "amazon", "agi", "machine learning", "deepseek",
        ),
        "geopolitics": (
            "ukraine", "russia", "nato", "china", "taiwan", "middle east",
            "israel", "iran", "north korea", "sanctions", "military", "war",
            "ceasefire", "peace talks", "missile", "nuclear", "troops",
            "invasion", "conflict", "diplomacy", "treaty", "alliance", "putin", "zelensky",
        ),
        "markets_economy": (
            "stock market", "dow jones", "nasdaq", "sp500", "wall street",
            "recession", "gdp", "unemployment", "jobs report", "earnings",
            "ipo", "merger", "acquisition", "bankruptcy", "tariff", "trade war",
            "debt ceiling", "fiscal", "stimulus", "economic growth", "labor market",
        ),
        "sports": (
            "nfl", "super bowl", "nba", "nba finals", "world series", "mlb",
            "world cup", "fifa", "nhl", "stanley cup", "masters", "wimbledon",
            "us open", "olympics", "championship", "playoff", "bracket",
        ),
        "climate_energy": (
            "climate", "carbon", "emissions", "renewable energy", "solar", "wind power",
            "oil", "crude", "opec", "natural gas", "lng", "gasoline", "petroleum",
            "paris accord", "net zero", "clean energy", "electric vehicle",
        ),
        "health_pharma": (
            "fda", "approval", "drug", "vaccine", "pharmaceutical", "biotech",
            "clinical trial", "pfizer", "moderna", "medicare", "medicaid",
            "healthcare", "covid", "pandemic", "who", "cancer", "treatment",
        ),
        "legal_justice": (
            "supreme court", "scotus", "ruling", "lawsuit", "indictment", "trial",
            "verdict", "conviction", "acquittal", "appeal", "attorney general",
            "doj", "fbi", "department of justice", "constitution", "amendment",
        ),
        "elon_musk_doge": (
            "elon musk", "musk", "tesla", "spacex", "starlink", "twitter", "x corp",
            "doge", "department of government efficiency", "xai",
        ),
    }
)


def get_clusters(text: str) -> frozenset[str]:
    """Return the ids of every cluster with at least one term inside ``text``.

    Terms are matched as raw substrings, so "fed" also hits "federal".
    """

    lower = (text or "").lower()
    return frozenset(
        cluster_id
        for cluster_id, terms in SEMANTIC_CLUSTERS.items()
        if any(term in lower for term in terms)
    )


__all__ = ["SEMANTIC_CLUSTERS", "get_clusters"]
