from rest_framework import serializers
from apps.users.serializers import UserSummarySerializer


class RatingSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    review = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class JobRatingsSerializer(serializers.Serializer):
    """Both sides' ratings for one job."""
    employer_rating = serializers.SerializerMethodField()
    worker_rating = serializers.SerializerMethodField()
    employer = UserSummarySerializer(read_only=True)
    worker = UserSummarySerializer(source='selected_worker', read_only=True)

    def _side(self, obj, side):
        if getattr(obj, f'{side}_rating') is None:
            return None
        return {
            'rating': getattr(obj, f'{side}_rating'),
            'review': getattr(obj, f'{side}_review'),
            'rated_at': getattr(obj, f'{side}_rated_at'),
        }

    def get_employer_rating(self, obj):
        return self._side(obj, 'employer')

    def get_worker_rating(self, obj):
        return self._side(obj, 'worker')


class ReceivedRatingSerializer(serializers.Serializer):
    """One rating a user received, flattened with the job it was given for."""
    id = serializers.IntegerField(source='job.id')
    job_title = serializers.CharField(source='job.title')
    company_name = serializers.CharField(source='job.company_name')
    job_date = serializers.DateField(source='job.date')
    rating = serializers.IntegerField()
    review = serializers.CharField()
    rated_at = serializers.DateTimeField()
    rated_by = UserSummarySerializer()
