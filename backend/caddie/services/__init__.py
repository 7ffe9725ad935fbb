# Services package init
"""
CaddieAI Backend — Services Layer
==================================

What:  Business logic between the routes (HTTP) and the database.
How:   Each service is a stateless class with a module-level singleton;
       methods that touch the database take the request's AsyncSession
       as their first argument.

Service Inventory:
    - CourseService: course catalogue CRUD, search and geo-lookup
    - UserCourseService: a user's saved courses and proximity checks
    - EmailService: transactional email over SMTP (retry + circuit breaker)
    - ShotTypeDetectionService: heuristic shot classification and difficulty
    - GolfContextService: AI prompt context, system prompt, club advice
    - RealtimeAudioService: in-memory registry of voice-assistant sessions
"""
