from django.contrib import admin, messages


class ModerationAdminMixin:
    """
    ModelAdmin mixin for moderated models.

    The changelist shows records of every status and offers bulk
    approve/reject/postpone actions. The acting admin user is recorded
    as moderated_by.

    Usage:
        @admin.register(Post)
        class PostAdmin(ModerationAdminMixin, admin.ModelAdmin):
            list_display = ['title', 'status', 'moderated_at']
    """
    actions = ['approve_selected', 'reject_selected', 'postpone_selected']

    def get_queryset(self, request):
        return super().get_queryset(request).with_any_status()

    def _moderate_selected(self, request, status_name, transition):
        count = transition(actor=request.user)
        self.message_user(
            request,
            f"{count} {self.model._meta.verbose_name_plural} {status_name}.",
            messages.SUCCESS
        )
        return count

    @admin.action(description="Approve selected records")
    def approve_selected(self, request, queryset):
        return self._moderate_selected(request, 'approved', queryset.approve)

    @admin.action(description="Reject selected records")
    def reject_selected(self, request, queryset):
        return self._moderate_selected(request, 'rejected', queryset.reject)

    @admin.action(description="Postpone selected records")
    def postpone_selected(self, request, queryset):
        return self._moderate_selected(request, 'postponed', queryset.postpone)
