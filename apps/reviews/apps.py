from django.apps import AppConfig  # type: ignore


class ReviewsConfig(AppConfig):
    name = "apps.reviews"
    label = "reviews"
    verbose_name = "Reviews"

    def ready(self) -> None:
        from shared.application.message_bus import message_bus

        from .events import ReviewChanged
        from .ratings import on_review_changed

        message_bus.register_event_handler(ReviewChanged, on_review_changed)
