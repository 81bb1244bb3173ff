# imports/admin.py

from django.contrib import admin, messages

from imports.models import ImportContainer, ImportRequirement
from imports.services.cost_allocation import AllocationError, allocate_container_costs


@admin.register(ImportContainer)
class ImportContainerAdmin(admin.ModelAdmin):
    list_display = ("container_number", "supplier", "arrival_date", "status", "total_import_expenses", "allocated_at")
    list_filter = ("status",)
    search_fields = ("container_number", "bl_number")
    readonly_fields = ("total_import_expenses", "allocated_at", "created_at", "updated_at")
    actions = ["reallocate_selected"]

    @admin.action(description="Re-run landed cost allocation")
    def reallocate_selected(self, request, queryset):
        for container in queryset:
            try:
                allocate_container_costs(container)
            except AllocationError as exc:
                self.message_user(request, f"{container.container_number}: {exc}", level=messages.ERROR)


@admin.register(ImportRequirement)
class ImportRequirementAdmin(admin.ModelAdmin):
    list_display = ("product", "sales_order", "required_quantity", "shortage_quantity", "status", "created_at")
    list_filter = ("status",)
    readonly_fields = ("product", "sales_order", "required_quantity", "shortage_quantity", "created_at")
