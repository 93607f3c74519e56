from .player_embed import PlayerEmbed, get_player_embed

__all__ = ["PlayerEmbed", "get_player_embed"]
