class SceneGlueError(Exception):
    """Base exception for scene-glue"""
    pass


class ConfigurationError(SceneGlueError):
    """Configuration-related errors"""
    pass


class GlueLoadError(SceneGlueError):
    """A named glue module could not be loaded"""
    pass


class UndefinedStepError(SceneGlueError):
    """No step definition matches the step text"""

    def __init__(self, step_text: str, snippet: str = ""):
        super().__init__(f"No step definition found for: {step_text}")
        self.step_text = step_text
        self.snippet = snippet


class AmbiguousStepError(SceneGlueError):
    """More than one step definition matches the step text"""

    def __init__(self, step_text: str, locations):
        listed = ", ".join(str(location) for location in locations)
        super().__init__(f"Ambiguous step '{step_text}' matches: {listed}")
        self.step_text = step_text
        self.locations = list(locations)


class PendingStepError(SceneGlueError):
    """Raised by step bodies that are not implemented yet"""
    pass


class InvalidPatternError(SceneGlueError):
    """A step pattern could not be compiled"""

    def __init__(self, pattern: str, cause: Exception):
        super().__init__(f"Invalid step pattern '{pattern}': {cause}")
        self.pattern = pattern
