import logging
import os

from rest_framework.decorators import api_view
from rest_framework.response import Response
from rest_framework import status
from django.http import FileResponse

from .exceptions import ExternalDataUnavailable, CountryServiceError
from .serializers import CountrySerializer
from .services import get_refresher
from .store import CountryStore, SORT_ORDERINGS
from . import utils

logger = logging.getLogger(__name__)

# query parameter -> CountryStore.find_all keyword
LIST_FILTERS = {
    "region": "region",
    "currency": "currency_code",
}


def internal_error(exc):
    return Response(
        {"error": "Internal server error", "details": str(exc)},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@api_view(['POST'])
def refresh_countries(request):
    """
    POST /countries/refresh
    Fetch countries and exchange rates, then update or create cached data.
    """
    try:
        result = get_refresher().refresh()
    except ExternalDataUnavailable as exc:
        return Response(
            {"error": "External data source unavailable", "details": exc.details},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    except CountryServiceError as exc:
        logger.error("Refresh aborted: %s", exc)
        return internal_error(exc)

    return Response(
        {
            "message": "Refresh successful",
            "total_countries": result.total_countries,
            "processed": result.processed,
            "created": result.created,
            "updated": result.updated,
            "last_refreshed_at": result.last_refreshed_at.isoformat(),
            "duration_seconds": result.duration_seconds,
        },
        status=status.HTTP_200_OK,
    )


@api_view(['GET'])
def list_countries(request):
    """
    GET /countries
    Filters (exact match): ?region=Africa, ?currency=NGN
    Sorting: ?sort=gdp_desc
    """
    criteria = {}
    for key in request.GET.keys():
        value = request.GET.get(key)
        if key != "sort" and key not in LIST_FILTERS:
            return Response(
                {"error": "Validation failed", "details": {key: "is not a valid filter"}},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if not value:
            return Response(
                {"error": "Validation failed", "details": {key: "is required"}},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if key == "sort":
            if value not in SORT_ORDERINGS:
                return Response(
                    {"error": "Validation failed", "details": {"sort": f"must be one of {', '.join(SORT_ORDERINGS)}"}},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            criteria["sort"] = value
        else:
            criteria[LIST_FILTERS[key]] = value

    try:
        countries = CountryStore().find_all(**criteria)
    except CountryServiceError as exc:
        return internal_error(exc)

    serializer = CountrySerializer(countries, many=True)
    return Response(serializer.data)


@api_view(['GET', 'DELETE'])
def country_detail(request, name):
    """
    GET /countries/:name  -> return 404 JSON if not found
    DELETE /countries/:name -> delete, return 204 or 404
    """
    store = CountryStore()
    try:
        country = store.find_by_name(name)
        if country is None:
            return Response({"error": "Country not found"}, status=status.HTTP_404_NOT_FOUND)

        if request.method == 'GET':
            serializer = CountrySerializer(country)
            return Response(serializer.data)

        store.delete(country)
    except CountryServiceError as exc:
        return internal_error(exc)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
def get_status(request):
    """
    GET /status -> { total_countries, last_refreshed_at }
    last_refreshed_at is the max(last_refreshed_at) across records (or null)
    """
    store = CountryStore()
    try:
        total = store.count()
        last = store.max_of("last_refreshed_at")
    except CountryServiceError as exc:
        return internal_error(exc)
    return Response({
        "total_countries": total,
        "last_refreshed_at": last.isoformat() if last else None,
    })


@api_view(['GET'])
def get_summary_image(request):
    """
    GET /countries/image
    Serve the summary image written by the last refresh.
    """
    path = utils.get_summary_image_path()
    if not os.path.exists(path):
        return Response({"error": "Summary image not found"}, status=status.HTTP_404_NOT_FOUND)
    return FileResponse(open(path, 'rb'), content_type='image/png')
