class RecipeBookError(Exception):
    pass


class StoreError(RecipeBookError):
    """The recipe collection could not be read or evaluated."""


class RecipeNotFoundError(RecipeBookError):
    def __init__(self, recipe_id: int) -> None:
        super().__init__(f"Recipe {recipe_id} not found")
        self.recipe_id = recipe_id


class InvalidFilterError(RecipeBookError, ValueError):
    pass


class InvalidTagError(RecipeBookError, ValueError):
    pass
