"""
Game implementations.

Each game is a self-contained submodule under games/<game_type>/ providing
its engine, configuration (Pydantic model), renderers and a create_game()
factory.
"""

from importlib import import_module


def get_game_module(game_type: str):
    """
    Import and return the game module for the specified type.

    Uses the convention that each game lives in games/<game_type>/.

    Args:
        game_type: Game identifier (e.g., "memory_match")

    Returns:
        The game submodule

    Raises:
        ValueError: If game module cannot be found
    """
    try:
        return import_module(f"games.{game_type}")
    except ImportError:
        raise ValueError(
            f"Unknown game type: {game_type}. "
            f"No module found at games.{game_type}"
        )
