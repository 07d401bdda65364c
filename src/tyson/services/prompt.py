"""Interactive yes/no confirmation."""


class ConfirmationPrompt:
    """Asks the operator to confirm a destructive action.

    Unrecognized answers are re-asked at most ``max_attempts`` times. End of
    input and exhausted attempts both count as "no".
    """

    YES = {"y", "yes"}
    NO = {"n", "no"}

    def __init__(self, console, logger, max_attempts: int = 3):
        self.console = console
        self.logger = logger
        self.max_attempts = max(1, max_attempts)

    def ask(self, message: str) -> bool:
        prompt = message
        for _ in range(self.max_attempts):
            try:
                response = self.console.input(prompt)
            except EOFError:
                self.logger.warning("No confirmation received (end of input).")
                return False

            answer = response.strip().lower()
            if answer in self.YES:
                return True
            if answer in self.NO:
                return False
            prompt = "Please type yes or no and then press enter: "

        self.logger.warning("No valid confirmation after %s attempts.", self.max_attempts)
        return False
