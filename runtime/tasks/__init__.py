"""
Maintenance tasks for the Briefdesk runtime.

- maintenance: task registry, the four consistency sweeps, TaskRunner
- scheduler: periodic background trigger for TaskRunner.run_all()
"""
