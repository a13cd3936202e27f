# apps/doctors/filters.py

from django_filters import rest_framework as filters
from django.db.models import Q

from .models import Doctor


class DoctorFilter(filters.FilterSet):
    """Filter for doctors"""

    search = filters.CharFilter(method='filter_search')
    department = filters.NumberFilter(field_name='department_id')
    specialization = filters.CharFilter(field_name='specialization', lookup_expr='iexact')
    min_fee = filters.NumberFilter(field_name='consultation_fee', lookup_expr='gte')
    max_fee = filters.NumberFilter(field_name='consultation_fee', lookup_expr='lte')

    class Meta:
        model = Doctor
        fields = ['status', 'department', 'specialization']

    def filter_search(self, queryset, name, value):
        """Search by name, email, specialization or department"""
        return queryset.filter(
            Q(user__full_name__icontains=value) |
            Q(user__email__icontains=value) |
            Q(specialization__icontains=value) |
            Q(department__name__icontains=value)
        )
