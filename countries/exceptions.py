class CountryServiceError(Exception):
    """Base class for errors raised while refreshing or querying countries."""

    default_message = "Country service error"

    def __init__(self, details=None):
        self.details = details or self.default_message
        super().__init__(self.details)


class ExternalDataUnavailable(CountryServiceError):
    default_message = "Could not fetch data from external APIs"


class StoreUnavailable(CountryServiceError):
    default_message = "Country store is unavailable"


class StoreWriteFailed(CountryServiceError):
    default_message = "Could not write country record"


class InvalidCountryEntry(CountryServiceError):
    default_message = "Malformed country entry"
