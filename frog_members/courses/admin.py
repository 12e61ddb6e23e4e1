from django.contrib import admin

from .models import (
    ApplicationComment,
    Course,
    CourseApplication,
    CourseIntakeDate,
    CourseJobPosition,
    CourseSubject,
    GoalLocation,
    JobPosition,
    School,
    SchoolAccessToken,
    SchoolPhoto,
    UserSchedule,
)


class SchoolPhotoInline(admin.TabularInline):
    model = SchoolPhoto
    extra = 0


@admin.register(School)
class SchoolAdmin(admin.ModelAdmin):
    list_display = ('name', 'goal_location', 'website', 'created_at')
    search_fields = ('name',)
    list_filter = ('goal_location',)
    inlines = [SchoolPhotoInline]


@admin.register(GoalLocation)
class GoalLocationAdmin(admin.ModelAdmin):
    list_display = ('city', 'country')


@admin.register(JobPosition)
class JobPositionAdmin(admin.ModelAdmin):
    list_display = ('title', 'industry')
    search_fields = ('title',)


class CourseSubjectInline(admin.TabularInline):
    model = CourseSubject
    extra = 0


class CourseIntakeDateInline(admin.TabularInline):
    model = CourseIntakeDate
    extra = 0


class CourseJobPositionInline(admin.TabularInline):
    model = CourseJobPosition
    extra = 0


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ('name', 'school', 'category', 'total_weeks', 'content_snare_template_id')
    list_filter = ('category', 'school')
    search_fields = ('name', 'school__name')
    inlines = [CourseSubjectInline, CourseIntakeDateInline, CourseJobPositionInline]


class ApplicationCommentInline(admin.TabularInline):
    model = ApplicationComment
    extra = 0
    readonly_fields = ('author', 'created_at')


class UserScheduleInline(admin.TabularInline):
    model = UserSchedule
    extra = 0
    fields = ('title', 'year', 'month', 'day', 'is_completed', 'is_admin_locked', 'sort_order')


@admin.register(CourseApplication)
class CourseApplicationAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'course', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('user__email', 'course__name', 'content_snare_request_id')
    readonly_fields = ('content_snare_id', 'content_snare_request_id', 'request_url', 'created_at', 'updated_at')
    inlines = [UserScheduleInline, ApplicationCommentInline]


@admin.register(SchoolAccessToken)
class SchoolAccessTokenAdmin(admin.ModelAdmin):
    list_display = ('school', 'email', 'expires_at', 'used_at', 'created_by')
    readonly_fields = ('token', 'created_at')
