from vcsstatus.main import vcsstatus

vcsstatus()
