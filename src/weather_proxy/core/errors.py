class WeatherError(Exception):
    """Terminal error for one /weather request, rendered as plain text."""

    status_code = 500
    detail = "Internal server error"

    def __init__(self, detail=None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class MissingApiKey(WeatherError):
    status_code = 500
    detail = "API key for OpenWeatherMap is not set"


class MissingCoordinates(WeatherError):
    status_code = 400
    detail = "Please provide both latitude and longitude"


class UpstreamAuthError(WeatherError):
    status_code = 401
    detail = "Invalid API key"


class UpstreamUnavailable(WeatherError):
    status_code = 500
    detail = "Failed to request weather data"


class UpstreamPayloadError(WeatherError):
    status_code = 500
    detail = "Failed to process weather data"


class ClientDisconnected(WeatherError):
    status_code = 499
    detail = "Client closed request"
