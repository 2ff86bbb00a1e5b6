# Agents module
from .vision_agent import DamageAnalysis, DamageImage, analyze_damage, fallback_analysis
from .shop_agent import find_repair_shops
from .text_agent import judge_estimate
from .gateway import AIGateway, OllamaGateway

__all__ = [
    "DamageAnalysis",
    "DamageImage",
    "analyze_damage",
    "fallback_analysis",
    "find_repair_shops",
    "judge_estimate",
    "AIGateway",
    "OllamaGateway",
]
