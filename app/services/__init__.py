"""
Service Organization
====================
Services are organized by their lifecycle and instantiation pattern:

**application/**
  Singleton services managed by ServiceContainer. One instance per application.
  Examples: IrrigationReminderService, NotificationStore, ScheduleService

**utilities/**
  Thin clients for external systems that hold no shared state.
  Examples: SmsService
"""
