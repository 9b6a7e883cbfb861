from __future__ import annotations


class RecipeServiceError(Exception):
    pass


class ValidationError(RecipeServiceError):
    pass


class ConfigurationError(RecipeServiceError):
    pass


class UpstreamExhaustedError(RecipeServiceError):
    def __init__(self, attempts: int, last_error: str | None = None):
        super().__init__(f"AI API failed after {attempts} attempts")
        self.attempts = attempts
        self.last_error = last_error


class PersistenceError(RecipeServiceError):
    def __init__(self, reason: str):
        super().__init__(f"Failed to save recipe: {reason}")
        self.reason = reason


class RecipeNotFoundError(RecipeServiceError):
    def __init__(self, recipe_id: str):
        super().__init__(f"Recipe not found: {recipe_id}")
        self.recipe_id = recipe_id


class RecipePermissionError(RecipeServiceError):
    def __init__(self, recipe_id: str, message: str = "Not authorized to access this recipe"):
        super().__init__(message)
        self.recipe_id = recipe_id


class StorageError(RecipeServiceError):
    pass


class ImageUploadError(StorageError):
    def __init__(self, object_path: str, reason: str = "Upload failed"):
        super().__init__(f"Failed to upload {object_path}: {reason}")
        self.object_path = object_path
        self.reason = reason
